"""
VMF to Narbacular Drop conversion pipeline.

Orchestrates kit discovery, VMF parsing, the translation passes, .map file
writing and compilation to a playable .cmf level.
"""

import logging
import time
from dataclasses import dataclass, field
from enum import Enum
from pathlib import Path
from typing import Any, Dict, List, Optional, Union

from ..conversion.materials import MaterialTable
from ..settings import ConverterSettings
from ..translation.context import TranslationContext
from ..translation.translator import create_context
from ..translation.vmf_tree import VMFTree, VMFTreeError, load_vmf
from .compiler import CompileError, CompileReport, Runner, compile_with_retry, subprocess_runner
from .passes import ConversionPass, PassResult, default_passes
from .toolkit import Toolkit, ToolkitError

logger = logging.getLogger(__name__)

LEVEL_SUFFIX = ".cmf"
MAP_SUFFIX = ".map"


# ---------------------------------------------------------------------------
# Enums / exceptions
# ---------------------------------------------------------------------------

class ConversionStage(Enum):
    INITIALIZE = "initialize"
    PARSE = "parse"
    TRANSLATE = "translate"
    WRITE_MAP = "write_map"
    COMPILE = "compile"
    COMPLETE = "complete"


class PipelineError(Exception):
    pass


# ---------------------------------------------------------------------------
# Result
# ---------------------------------------------------------------------------

@dataclass
class ConversionResult:
    success: bool
    map_file: Optional[str] = None
    level_file: Optional[str] = None
    stages_completed: List[ConversionStage] = field(default_factory=list)
    errors: List[str] = field(default_factory=list)
    warnings: List[str] = field(default_factory=list)
    metrics: Dict[str, Any] = field(default_factory=dict)

    @property
    def total_time(self) -> float:
        return self.metrics.get("total_time", 0.0)

    def add_error(self, error: str, stage: Optional[ConversionStage] = None):
        if stage:
            error = f"[{stage.value}] {error}"
        self.errors.append(error)

    def add_warning(self, warning: str, stage: Optional[ConversionStage] = None):
        if stage:
            warning = f"[{stage.value}] {warning}"
        self.warnings.append(warning)


def level_path_for(input_path: Union[str, Path]) -> Path:
    return Path(input_path).with_suffix(LEVEL_SUFFIX)


def map_path_for(input_path: Union[str, Path]) -> Path:
    return Path(input_path).with_suffix(MAP_SUFFIX)


# ---------------------------------------------------------------------------
# Pipeline
# ---------------------------------------------------------------------------

class ConversionPipeline:
    """Converts one VMF file per call to :meth:`convert`."""

    def __init__(self, settings: Optional[ConverterSettings] = None,
                 toolkit: Optional[Toolkit] = None,
                 runner: Optional[Runner] = None,
                 passes: Optional[List[ConversionPass]] = None):
        self.settings = settings or ConverterSettings()
        self.toolkit = toolkit
        self.runner = runner
        self.passes = passes if passes is not None else default_passes()
        self.current_stage = ConversionStage.INITIALIZE

        self.materials: Optional[MaterialTable] = None
        self.ctx: Optional[TranslationContext] = None

    # -- stages --

    def _initialize(self) -> None:
        self.current_stage = ConversionStage.INITIALIZE
        try:
            if self.toolkit is None:
                self.toolkit = Toolkit.locate(self.settings)
        except ToolkitError as e:
            raise PipelineError(str(e)) from e

        self.materials = self.toolkit.material_table(self.settings.texture_mode)
        if self.runner is None and self.settings.compile:
            self.runner = subprocess_runner(self.toolkit.compiler, self.settings.use_wine)

    def _parse(self, input_path: Path):
        self.current_stage = ConversionStage.PARSE
        try:
            return load_vmf(input_path)
        except OSError as e:
            raise PipelineError(f"Cannot read {input_path}: {e}") from e
        except VMFTreeError as e:
            raise PipelineError(str(e)) from e

    def translate(self, raw_text: str, tree: VMFTree, result: ConversionResult) -> TranslationContext:
        """Run every pass over a fresh context built from ``tree``."""
        self.current_stage = ConversionStage.TRANSLATE
        wad_path = self.toolkit.wad_path(self.materials.mode)
        ctx = create_context(tree, raw_text, self.settings, self.materials, wad_path)
        self.ctx = ctx

        for conversion_pass in self.passes:
            logger.info("Pass: %s", conversion_pass.name)
            try:
                pass_result: PassResult = conversion_pass.run(ctx)
            except (KeyError, TypeError, ValueError) as e:
                raise PipelineError(f"{conversion_pass.name} failed on malformed input: {e}") from e
            for warning in pass_result.warnings:
                result.add_warning(warning, self.current_stage)
            for key, value in pass_result.metrics.items():
                result.metrics[f"{conversion_pass.name.lower().replace(' ', '_')}.{key}"] = value
            if not pass_result.success:
                raise PipelineError("; ".join(pass_result.errors))
        return ctx

    def _write_map(self, ctx: TranslationContext, map_path: Path) -> Path:
        self.current_stage = ConversionStage.WRITE_MAP
        try:
            ctx.document.write(map_path)
        except OSError as e:
            raise PipelineError(f"Cannot write {map_path}: {e}") from e
        logger.info("MAP written: %s (%d bytes)", map_path, map_path.stat().st_size)
        return map_path

    def _compile(self, ctx: TranslationContext, map_path: Path, level_path: Path) -> CompileReport:
        self.current_stage = ConversionStage.COMPILE
        try:
            return compile_with_retry(
                ctx.document.render(), map_path, level_path, self.runner,
                ctx.materials, self.settings.max_compile_attempts,
            )
        except CompileError as e:
            raise PipelineError(str(e)) from e

    # -- main entry --

    def convert(self, input_path: Union[str, Path],
                output_path: Optional[Union[str, Path]] = None) -> ConversionResult:
        """
        Convert a VMF file into a Narbacular Drop level.

        Args:
            input_path: Source VMF
            output_path: Compiled level; defaults to the input with a .cmf suffix

        Returns:
            ConversionResult; on failure ``errors`` names the failing stage
        """
        input_path = Path(input_path)
        level_path = Path(output_path) if output_path else level_path_for(input_path)
        map_path = map_path_for(input_path)
        result = ConversionResult(success=False)
        start_time = time.time()

        try:
            self._initialize()
            result.stages_completed.append(ConversionStage.INITIALIZE)

            raw_text, tree = self._parse(input_path)
            result.stages_completed.append(ConversionStage.PARSE)

            ctx = self.translate(raw_text, tree, result)
            result.stages_completed.append(ConversionStage.TRANSLATE)

            result.map_file = str(self._write_map(ctx, map_path))
            result.stages_completed.append(ConversionStage.WRITE_MAP)

            if self.settings.compile:
                report = self._compile(ctx, map_path, level_path)
                result.level_file = str(level_path)
                result.metrics["compile_attempts"] = report.attempts
                for texture in report.substituted:
                    result.add_warning(f"Substituted missing texture {texture}", ConversionStage.COMPILE)
                result.stages_completed.append(ConversionStage.COMPILE)
        except PipelineError as e:
            logger.error("%s", e)
            result.add_error(str(e), self.current_stage)
            return result

        result.success = True
        result.stages_completed.append(ConversionStage.COMPLETE)
        result.metrics["total_time"] = time.time() - start_time
        logger.info("Conversion finished in %.2fs", result.total_time)
        return result
