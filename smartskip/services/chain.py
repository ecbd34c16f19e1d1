import asyncio
import logging
from abc import ABC, abstractmethod
from typing import Any, Sequence, Type

import httpx

from smartskip.core.errors import BackendError, ChainExhausted

logger = logging.getLogger(__name__)


class Backend(ABC):
    """
    One interchangeable service in an ordered fallback list.

    ``attempt`` either returns the output or raises ``BackendError``.
    Transport errors and timeouts are converted by ``first_success``.
    """

    name: str = "backend"

    @abstractmethod
    async def attempt(self, payload: Any) -> Any:
        pass

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.name!r})"


def describe_transport_error(error: httpx.HTTPError) -> str:
    detail = str(error) or type(error).__name__
    return f"{type(error).__name__}: {detail}"


async def first_success(
    backends: Sequence[Backend],
    payload: Any,
    timeout: float,
    exhausted: Type[ChainExhausted] = ChainExhausted,
) -> Any:
    """
    Try backends strictly in order, one request outstanding at a time,
    and return the first success. Raises ``exhausted`` carrying every
    recorded failure when the list runs out.
    """
    failures = []

    for backend in backends:
        try:
            result = await asyncio.wait_for(backend.attempt(payload), timeout=timeout)
        except BackendError as e:
            failure = e
        except asyncio.TimeoutError:
            failure = BackendError(backend.name, f"timed out after {timeout:g}s")
        except httpx.HTTPError as e:
            failure = BackendError(backend.name, describe_transport_error(e))
        else:
            logger.debug(f"{backend.name} succeeded")
            return result

        failures.append(failure)
        logger.warning(f"Backend failed, trying next: {failure}")

    error = exhausted(failures)
    logger.error(str(error))
    raise error from error.cause
