"""
Conversion passes.

A pass is one step of the translation that takes the TranslationContext and
extends its document. The three passes run in a fixed order: entities first
(they may push brush entities into the world solid list and register wires),
then the logic that needs every wire, then the world solids.
"""

from abc import ABC, abstractmethod
from dataclasses import dataclass, field
from typing import Any, Dict, List, Optional

from ..translation.context import TranslationContext
from ..translation.entity_kinds import EntityKind
from ..translation.translator import emit_world, link_logic, translate_entities


@dataclass
class PassConfig:
    """
    Configuration for a conversion pass.

    Attributes:
        enabled: Whether this pass should run
    """
    enabled: bool = True


@dataclass
class PassResult:
    """
    Result of executing a conversion pass.

    Attributes:
        success: Whether the pass completed successfully
        ctx: The context the pass worked on
        warnings: Non-fatal issues encountered
        errors: Fatal issues that prevented completion
        metrics: Counts reported by the pass
    """
    success: bool
    ctx: TranslationContext
    warnings: List[str] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    def add_warning(self, message: str) -> None:
        """Add a warning message."""
        self.warnings.append(message)

    def add_error(self, message: str) -> None:
        """Add an error message and mark as failed."""
        self.errors.append(message)
        self.success = False


class ConversionPass(ABC):
    """Base class for the conversion passes."""

    @property
    @abstractmethod
    def name(self) -> str:
        """Human-readable name for this pass."""
        pass

    @property
    def description(self) -> str:
        return ""

    @abstractmethod
    def execute(self, ctx: TranslationContext, config: PassConfig) -> PassResult:
        """
        Execute this pass on the given context.

        Args:
            ctx: The current translation state
            config: Pass configuration

        Returns:
            PassResult with any issues found
        """
        pass

    def validate_preconditions(self, ctx: TranslationContext) -> List[str]:
        """
        Check if the context meets this pass's requirements.

        Returns a list of error messages if preconditions are not met.
        """
        return []

    def run(self, ctx: TranslationContext, config: Optional[PassConfig] = None) -> PassResult:
        """
        Run this pass with precondition checks.

        Warnings the pass adds to the context are copied into the result.
        """
        config = config or PassConfig()

        if not config.enabled:
            return PassResult(success=True, ctx=ctx)

        precondition_errors = self.validate_preconditions(ctx)
        if precondition_errors:
            result = PassResult(success=False, ctx=ctx)
            for error in precondition_errors:
                result.add_error(f"Precondition failed: {error}")
            return result

        seen = len(ctx.warnings)
        result = self.execute(ctx, config)
        for warning in ctx.warnings[seen:]:
            result.add_warning(warning)
        return result


class TranslateEntitiesPass(ConversionPass):
    """Runs every source entity through the rules of the map's dialect."""

    @property
    def name(self) -> str:
        return "Translate entities"

    @property
    def description(self) -> str:
        return "Convert spawns, exits, buttons, lights and other entities"

    def validate_preconditions(self, ctx: TranslationContext) -> List[str]:
        if ctx.document.entities:
            return ["Document already holds entities"]
        return []

    def execute(self, ctx: TranslationContext, config: PassConfig) -> PassResult:
        kinds = translate_entities(ctx)
        result = PassResult(success=True, ctx=ctx)
        result.metrics["entities"] = len(ctx.entities)
        result.metrics["unrecognized"] = kinds[EntityKind.UNRECOGNIZED]
        result.metrics["buttons"] = ctx.button_count
        result.metrics["barriers"] = len(ctx.barriers)
        if ctx.exit is None:
            result.add_warning("Map has no exit door")
        return result


class LinkLogicPass(ConversionPass):
    """Emits the exit counter and barrier logic once every wire is known."""

    @property
    def name(self) -> str:
        return "Link logic"

    def execute(self, ctx: TranslationContext, config: PassConfig) -> PassResult:
        link_logic(ctx)
        result = PassResult(success=True, ctx=ctx)
        result.metrics["logic_cells"] = ctx.logic_cells
        result.metrics["wires"] = sum(ctx.wires.values())
        return result


class EmitSolidsPass(ConversionPass):
    """Turns world solids, and solids of unhandled brush entities, into geometry."""

    @property
    def name(self) -> str:
        return "Emit solids"

    def execute(self, ctx: TranslationContext, config: PassConfig) -> PassResult:
        emitted = emit_world(ctx)
        result = PassResult(success=True, ctx=ctx)
        result.metrics["solids"] = len(ctx.world_solids)
        result.metrics["entities"] = emitted
        if not emitted:
            result.add_warning("Map has no geometry")
        return result


def default_passes() -> List[ConversionPass]:
    return [TranslateEntitiesPass(), LinkLogicPass(), EmitSolidsPass()]
