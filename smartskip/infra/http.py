import httpx

from smartskip.core.state import state

USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) "
    "AppleWebKit/537.36 (KHTML, like Gecko) "
    "Chrome/122.0.0.0 Safari/537.36"
)


def create_http_client() -> httpx.AsyncClient:
    """Shared client; per-attempt ceilings are applied by the callers"""
    return httpx.AsyncClient(
        follow_redirects=True,
        timeout=httpx.Timeout(30.0, connect=10.0),
        headers={"User-Agent": USER_AGENT},
    )


async def init_http_client() -> None:
    if state.http_client is None:
        state.http_client = create_http_client()


def get_http_client() -> httpx.AsyncClient:
    if state.http_client is None:
        state.http_client = create_http_client()
    return state.http_client


async def close_http_client() -> None:
    if state.http_client is not None:
        await state.http_client.aclose()
        state.http_client = None
