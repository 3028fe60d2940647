"""
csg.exe invocation with missing-texture recovery.

The compiler stops at the first texture it cannot find in the WAD. Each
time that happens the texture is replaced by the fallback texture in the
MAP text and the compile is retried.
"""

import logging
import os
import re
import subprocess
from dataclasses import dataclass, field
from pathlib import Path
from typing import Callable, List, Optional, Union

from ..conversion.map_writer import replace_texture
from ..conversion.materials import MaterialTable

logger = logging.getLogger(__name__)

_MISSING_TEXTURE_RE = re.compile(r"Unable to find texture (\S+?)!")

# Runs the compiler on (map path, output path) and returns its output text
Runner = Callable[[Path, Path], str]


class CompileError(Exception):
    """Raised when the compiler cannot be run or never succeeds."""
    pass


class MissingTextureError(CompileError):
    """Raised when a missing texture cannot be substituted."""

    def __init__(self, texture: str, source: Optional[str], reason: str):
        self.texture = texture
        self.source = source
        super().__init__(f"Texture {texture} ({source or 'unknown material'}) {reason}")


def find_missing_texture(output: str) -> Optional[str]:
    match = _MISSING_TEXTURE_RE.search(output)
    return match.group(1) if match else None


def build_command(compiler: Path, map_path: Path, output_path: Path,
                  use_wine: Optional[bool] = None) -> List[str]:
    if use_wine is None:
        use_wine = os.name != "nt"
    cmd = ["wine"] if use_wine else []
    cmd.extend([str(compiler), str(map_path), str(output_path)])
    return cmd


def subprocess_runner(compiler: Path, use_wine: Optional[bool] = None,
                      timeout: Optional[float] = None) -> Runner:
    """Runner that executes ``compiler`` in a child process."""

    def run(map_path: Path, output_path: Path) -> str:
        # The compiler runs from the kit directory
        cmd = build_command(compiler, Path(map_path).resolve(), Path(output_path).resolve(), use_wine)
        logger.debug("Running %s", " ".join(cmd))
        try:
            result = subprocess.run(
                cmd,
                capture_output=True,
                text=True,
                timeout=timeout,
                cwd=str(compiler.parent),
            )
        except subprocess.TimeoutExpired as e:
            raise CompileError(f"Compiler timed out after {timeout}s on {map_path.name}") from e
        except FileNotFoundError as e:
            raise CompileError(f"Could not execute: {cmd[0]}") from e

        if result.returncode != 0:
            logger.warning("Compiler exited with code %d", result.returncode)
        return result.stdout + "\n" + result.stderr

    return run


@dataclass
class CompileReport:
    output: str
    attempts: int
    map_text: str
    substituted: List[str] = field(default_factory=list)


def compile_with_retry(map_text: str, map_path: Union[str, Path], output_path: Union[str, Path],
                       runner: Runner, materials: MaterialTable,
                       max_attempts: int = 256) -> CompileReport:
    """
    Write ``map_text`` and compile it, substituting missing textures.

    Args:
        map_text: Rendered MAP document
        map_path: Where the MAP file is written before each attempt
        output_path: Compiled level path
        runner: Compiler invocation
        materials: Table the document was built with
        max_attempts: Upper bound on compiler runs

    Returns:
        CompileReport with the final compiler output and the MAP text that
        produced it

    Raises:
        MissingTextureError: If the fallback texture itself is missing, or a
            substituted texture is reported again
        CompileError: If the compiler fails or attempts run out
    """
    map_path = Path(map_path)
    output_path = Path(output_path)
    fallback = materials.missing.texture
    substituted: List[str] = []

    for attempt in range(1, max_attempts + 1):
        map_path.write_text(map_text, encoding="utf-8")
        output = runner(map_path, output_path)

        texture = find_missing_texture(output)
        if texture is None:
            logger.info("Compiled %s in %d attempt(s)", output_path, attempt)
            return CompileReport(output, attempt, map_text, substituted)

        source = materials.source_of(texture)
        if texture == fallback:
            raise MissingTextureError(texture, source, "is the fallback texture and missing from the WAD")
        if texture in substituted:
            raise MissingTextureError(texture, source, "is still reported after substitution")

        logger.warning("Recompiling without %s (%s)...", texture, source or "unknown material")
        map_text = replace_texture(map_text, texture, fallback)
        substituted.append(texture)

    raise CompileError(f"Compile did not succeed after {max_attempts} attempts")
