"""
Mock command executor for testing.

Records commands and returns canned responses without running anything.
"""

import re
import shlex
from typing import Dict, List, Optional, Tuple


class MockCommandExecutor:
    """
    Stand-in for gcollect.utils.CommandExecutor.

    Commands arrive as argument lists and are matched as their shell-joined
    string against the configured patterns (regex, falling back to substring).
    A response whose exit code is None raises OSError, the way a missing
    executable does.

    Example:
        executor = MockCommandExecutor({
            'lscpu': ('Architecture: x86_64', '', 0),
            'turbostat': ('', 'turbostat: no MSR access', 1),
        })
    """

    def __init__(
        self,
        responses: Optional[Dict[str, Tuple[str, str, Optional[int]]]] = None,
        default_response: Tuple[str, str, Optional[int]] = ('', '', 0)
    ):
        self.responses = responses or {}
        self.default_response = default_response
        self.executed_commands: List[str] = []
        self.execution_count: int = 0

    def execute(self, command, timeout=None):
        cmd = shlex.join(command) if isinstance(command, (list, tuple)) else command
        self.executed_commands.append(cmd)
        self.execution_count += 1

        response = self.default_response
        for pattern, candidate in self.responses.items():
            if self._matches(pattern, cmd):
                response = candidate
                break

        if response[2] is None:
            raise OSError(f"Command not found: {cmd.split()[0]}")
        return response

    def _matches(self, pattern: str, command: str) -> bool:
        try:
            return bool(re.search(pattern, command))
        except re.error:
            return pattern in command

    def add_response(self, pattern: str, stdout: str = '', stderr: str = '', exit_code: Optional[int] = 0):
        self.responses[pattern] = (stdout, stderr, exit_code)

    def assert_command_executed(self, pattern: str) -> str:
        for cmd in self.executed_commands:
            if self._matches(pattern, cmd):
                return cmd
        raise AssertionError(
            f"No command matching '{pattern}' was executed.\n"
            f"Executed commands: {self.executed_commands}"
        )

    def assert_command_not_executed(self, pattern: str):
        for cmd in self.executed_commands:
            if self._matches(pattern, cmd):
                raise AssertionError(
                    f"Command matching '{pattern}' was unexpectedly executed: {cmd}"
                )

    @property
    def last_command(self) -> Optional[str]:
        return self.executed_commands[-1] if self.executed_commands else None
