"""
Conversion pipeline module.

Provides the translation passes, level creation kit discovery and
compilation of the written .map file.
"""

from .converter import (
    ConversionPipeline,
    ConversionResult,
    ConversionStage,
    PipelineError,
)

from .passes import (
    ConversionPass,
    PassConfig,
    PassResult,
    TranslateEntitiesPass,
    LinkLogicPass,
    EmitSolidsPass,
)

from .toolkit import Toolkit, ToolkitError
from .compiler import CompileError, MissingTextureError, compile_with_retry

__all__ = [
    # Pipeline core
    'ConversionPipeline',
    'ConversionResult',
    'ConversionStage',
    'PipelineError',
    # Passes
    'ConversionPass',
    'PassConfig',
    'PassResult',
    'TranslateEntitiesPass',
    'LinkLogicPass',
    'EmitSolidsPass',
    # Kit and compiler
    'Toolkit',
    'ToolkitError',
    'CompileError',
    'MissingTextureError',
    'compile_with_retry',
]
