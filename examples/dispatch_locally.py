"""
Example: Driving the tool dispatcher without a transport

Runs a few tool calls in-process against a throwaway sandbox, which is a
quick way to see what a client receives for each operation.
"""

import asyncio
import tempfile
from pathlib import Path

from sandbox_mcp.filesystem import PathValidator, SandboxPolicy, ToolDispatcher


async def main() -> None:
    with tempfile.TemporaryDirectory() as tmpdir:
        root = Path(tmpdir) / "sandbox"
        root.mkdir()

        policy = SandboxPolicy(
            allowed_roots=[root],
            blocked_roots=[root / ".secret"],
            allowed_extensions=[".txt", ".md"],
        )
        dispatcher = ToolDispatcher(PathValidator(policy))

        calls = [
            ("write_file", {"filepath": str(root / "hello.md"), "content": "# Hello\n"}),
            ("read_file", {"filepath": str(root / "hello.md")}),
            ("list_directory", {"dirpath": str(root)}),
            ("read_file", {"filepath": str(root / ".secret" / "key.txt")}),
            ("read_file", {"filepath": f"{root}/../outside.txt"}),
            ("get_allowed_paths", {}),
        ]

        for name, arguments in calls:
            result = await dispatcher.execute_tool(name, arguments)
            status = "ERROR" if result.is_error else "OK"
            print(f"--- {name} [{status}]")
            print(result.message)
            print()


if __name__ == "__main__":
    asyncio.run(main())
