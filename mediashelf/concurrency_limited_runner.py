"""
Wrapper around `asyncio.create_subprocess_exec` that limits the number of
concurrent processes.
"""


import asyncio
from typing import Any, Optional, Tuple

from loguru import logger


class ConcurrencyLimitedRunner:
    """
    Runs subprocesses to completion, but never more than a fixed number
    at once. Additional requests wait for a slot to free up.
    """

    def __init__(self, max_processes: int = 1):
        """
        Args:
            max_processes: The maximum number of processes to run at once.
        """
        self.__semaphore = asyncio.Semaphore(max_processes)

    async def run(
        self,
        *args: Any,
        input_data: Optional[bytes] = None,
        timeout: Optional[float] = None,
        **kwargs: Any,
    ) -> Tuple[int, bytes, bytes]:
        """
        Runs a new process, feeds it some input, and waits for it to exit.

        Args:
            *args: Forwarded to `create_subprocess_exec`.
            input_data: Data to write to the process's stdin.
            timeout: Maximum time to wait for the process, in seconds. If it
                is exceeded, the process will be killed.
            **kwargs: Forwarded to `create_subprocess_exec`.

        Raises:
            `asyncio.TimeoutError` if the process took too long.

        Returns:
            The return code, stdout, and stderr of the process.

        """
        logger.debug("Acquiring semaphore to start subprocess...")
        async with self.__semaphore:
            process = await asyncio.create_subprocess_exec(
                *args,
                stdin=asyncio.subprocess.PIPE,
                stdout=asyncio.subprocess.PIPE,
                stderr=asyncio.subprocess.PIPE,
                **kwargs,
            )

            try:
                stdout, stderr = await asyncio.wait_for(
                    process.communicate(input=input_data), timeout=timeout
                )
            except asyncio.TimeoutError:
                logger.warning("Process {} timed out, killing.", process.pid)
                process.kill()
                await process.wait()
                raise

        logger.debug("Process finished, released semaphore.")
        return process.returncode, stdout, stderr
