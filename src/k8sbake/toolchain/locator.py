"""Renderer-facing lookup of tool executables."""

import shutil
from typing import Optional

from k8sbake.exceptions import ToolNotInstalledError
from k8sbake.log_utils import logger

from .acquisition import AcquisitionEngine
from .files import find_executable, make_executable


class ToolLocator:
    """
    Finds a tool for a renderer.

    Precedence: an explicit version is acquired; with no version, the tool on
    PATH wins, then the newest cached version, and otherwise the lookup fails.
    """

    def __init__(self, engine: Optional[AcquisitionEngine] = None):
        self.engine = engine or AcquisitionEngine()

    def get_tool_path(self, tool_name: str, version_token: Optional[str] = None) -> str:
        """
        Return the executable path to use for `tool_name`.

        Raises:
            ToolNotInstalledError: If no version was given and the tool is neither on PATH nor cached.
        """
        if version_token and version_token.strip():
            return self.engine.acquire(tool_name, version_token.strip())

        descriptor = self.engine.get_descriptor(tool_name)
        on_path = shutil.which(descriptor.executable_name)
        if on_path:
            logger.debug(f"Using {tool_name} found on PATH: {on_path}")
            return on_path

        cached = self.engine.cache.entries(tool_name)
        if cached:
            newest = cached[0]
            file_name = self.engine.host.executable_file_name(
                descriptor.executable_name
            )
            executable = find_executable(newest.path, file_name)
            if executable:
                make_executable(executable)
                logger.info(f"Using cached {tool_name} {newest.version}")
                return executable
            logger.debug(f"No {file_name} inside cached {tool_name} {newest.version}")

        raise ToolNotInstalledError(tool_name)
