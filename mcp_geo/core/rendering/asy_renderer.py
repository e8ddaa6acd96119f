"""
Asymptote Renderer
==================

Subprocess-based rendering of Asymptote code to SVG or PNG images.
Each render writes the code to a uniquely named temporary file, runs the
external ``asy`` compiler against it, reads back the produced image and
removes both files whatever the outcome.
"""

from typing import Any, List, Optional, Sequence
import asyncio
import base64
import codecs
import uuid
from pathlib import Path

from mcp.types import INTERNAL_ERROR, INVALID_PARAMS

from mcp_geo.config.logging import get_logger
from mcp_geo.config.settings import Settings, get_settings
from mcp_geo.models.schemas import ImageFormat, RenderResult

logger = get_logger(__name__)

INSTALL_URL = "https://asymptote.sourceforge.io/"
CHUNK_SIZE = 4096


class AsymptoteRenderError(Exception):
    """Exception raised when an Asymptote render fails.

    Carries a JSON-RPC error code and the renderer logs collected up to the
    point of failure.
    """

    def __init__(self, code: int, message: str, logs: str = "") -> None:
        super().__init__(message)
        self.code = code
        self.message = message
        self.logs = logs


class AsymptoteRenderer:
    """Runs the Asymptote compiler for a single request at a time."""

    def __init__(self, settings: Optional[Settings] = None):
        self.settings = settings or get_settings()
        self.logger: Any = logger.bind(component="asy_renderer")  # structlog.BoundLoggerBase

    @property
    def command(self) -> str:
        return self.settings.asy_command

    async def check_installation(self) -> bool:
        """
        Check that the Asymptote executable can be run.

        Never raises: a missing installation is reported in the logs so the
        server can still start and answer protocol requests.

        Returns:
            True if ``asy -version`` ran successfully
        """
        try:
            process = await asyncio.create_subprocess_exec(
                self.command,
                "-version",
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
            stdout, stderr = await process.communicate()
        except OSError as e:
            self._report_missing_installation(str(e))
            return False

        if process.returncode != 0:
            self._report_missing_installation(f"exit code {process.returncode}")
            return False

        version = (stdout or stderr).decode("utf-8", errors="replace").strip()
        self.logger.debug("Asymptote check successful", version=version)
        return True

    def _report_missing_installation(self, reason: str) -> None:
        self.logger.error(
            "ERROR: Asymptote command (asy) not found or not executable",
            command=self.command,
            reason=reason,
        )
        self.logger.error(
            "Please ensure Asymptote is installed and in your system PATH",
            install_instructions=INSTALL_URL,
        )

    def build_command(
        self,
        input_path: Path,
        output_base: Path,
        image_format: ImageFormat,
        render_level: Optional[float] = None,
    ) -> List[str]:
        """Build the asy command line for one render."""
        args = [self.command, "-f", image_format.value]
        if image_format is ImageFormat.PNG:
            level = render_level or self.settings.default_render_level
            args.append(f"-render={level:g}")
        args.extend(["-o", str(output_base), str(input_path)])
        return args

    async def render(
        self,
        asy_code: str,
        image_format: Optional[ImageFormat] = None,
        render_level: Optional[float] = None,
    ) -> RenderResult:
        """
        Render Asymptote code to an image.

        Args:
            asy_code: Asymptote source code
            image_format: Output image format, the configured default when None
            render_level: PNG antialiasing level, ignored for SVG

        Returns:
            RenderResult containing the image data and renderer logs

        Raises:
            AsymptoteRenderError: If the code is empty or rendering fails
        """
        if asy_code.strip() == "":
            raise AsymptoteRenderError(INVALID_PARAMS, "asyCode parameter cannot be empty.")

        image_format = image_format or ImageFormat(self.settings.default_format)

        work_dir = self.settings.work_dir
        base_name = str(uuid.uuid4())
        input_path = work_dir / f"{base_name}.asy"
        output_base = work_dir / base_name
        output_path = work_dir / f"{base_name}.{image_format.value}"

        logs: List[str] = []

        self.logger.info(
            "Rendering Asymptote code",
            code_length=len(asy_code),
            format=image_format.value,
            request_id=base_name,
        )

        try:
            input_path.write_text(asy_code, encoding="utf-8")

            command = self.build_command(input_path, output_base, image_format, render_level)
            exit_code = await self._run(command, work_dir, logs)

            if exit_code != 0:
                logs.append(f"[ASY EXIT CODE]: {exit_code}\n")
                if not output_path.exists():
                    raise AsymptoteRenderError(
                        INTERNAL_ERROR,
                        f"Asymptote process exited with code {exit_code}. Output file not found.",
                    )

            if not output_path.exists():
                raise AsymptoteRenderError(
                    INTERNAL_ERROR,
                    f"Asymptote process completed (exit code {exit_code}), "
                    f"but output file {output_path.name} was not created.",
                )

            image_data = output_path.read_bytes()
            result = RenderResult(
                image_data=image_data,
                base64_data=base64.b64encode(image_data).decode("utf-8"),
                format=image_format,
                file_size=len(image_data),
                exit_code=exit_code,
                logs="".join(logs),
            )

            self.logger.info(
                "Asymptote render completed",
                request_id=base_name,
                file_size=result.file_size,
                exit_code=exit_code,
            )
            return result

        except AsymptoteRenderError as e:
            logs.append(f"[SERVER ERROR]: {e.message}\n")
            e.logs = "".join(logs)
            self.logger.error("Asymptote render failed", request_id=base_name, error=e.message)
            raise
        except Exception as e:
            logs.append(f"[SERVER ERROR]: {e}\n")
            self.logger.error("Asymptote render error", request_id=base_name, error=str(e))
            raise AsymptoteRenderError(
                INTERNAL_ERROR, f"Server error: {e}", logs="".join(logs)
            ) from e
        finally:
            self._cleanup(input_path, output_path)

    async def _run(self, command: Sequence[str], work_dir: Path, logs: List[str]) -> Optional[int]:
        """Run asy to completion, appending its output to logs."""
        try:
            process = await asyncio.create_subprocess_exec(
                *command,
                cwd=str(work_dir),
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
            )
        except OSError as e:
            message = f"Failed to start Asymptote process: {e}"
            logs.append(f"[PROCESS ERROR]: {message}\n")
            raise AsymptoteRenderError(INTERNAL_ERROR, message) from e

        try:
            returncode = await asyncio.wait_for(
                self._collect_output(process, logs), timeout=self.settings.render_timeout
            )
        except asyncio.TimeoutError:
            process.kill()
            await process.wait()
            raise AsymptoteRenderError(
                INTERNAL_ERROR,
                f"Asymptote process timed out after {self.settings.render_timeout:g} seconds.",
            )

        return returncode

    async def _collect_output(self, process: Any, logs: List[str]) -> int:
        """Wait for exit while logging stdout and stderr chunks in arrival order."""
        _, _, returncode = await asyncio.gather(
            _pump(process.stdout, "[ASY STDOUT]", logs),
            _pump(process.stderr, "[ASY STDERR]", logs),
            process.wait(),
        )
        return returncode

    def _cleanup(self, input_path: Path, output_path: Path) -> None:
        """Remove the request's temporary files."""
        try:
            input_path.unlink()
        except OSError as e:
            self.logger.error("Failed to delete temp file", path=str(input_path), error=str(e))

        try:
            output_path.unlink()
        except FileNotFoundError:
            pass  # not created when the render failed
        except OSError as e:
            self.logger.warning("Failed to delete output file", path=str(output_path), error=str(e))


async def _pump(stream: Any, prefix: str, logs: List[str]) -> None:
    if stream is None:
        return
    decoder = codecs.getincrementaldecoder("utf-8")(errors="replace")
    while True:
        chunk = await stream.read(CHUNK_SIZE)
        text = decoder.decode(chunk, final=not chunk)
        if text:
            logs.append(f"{prefix}: {text}")
        if not chunk:
            return


# Global renderer instance
_global_renderer: Optional[AsymptoteRenderer] = None


def get_renderer() -> AsymptoteRenderer:
    """Get or create the global renderer."""
    global _global_renderer
    if _global_renderer is None:
        _global_renderer = AsymptoteRenderer()
    return _global_renderer


async def check_asymptote_installation() -> bool:
    """Check the Asymptote installation with the global renderer."""
    return await get_renderer().check_installation()
