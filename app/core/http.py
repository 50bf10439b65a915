import httpx
from fastapi import Request

from app.core.config import settings


def build_clients() -> dict[str, httpx.AsyncClient]:
    return {
        "http": httpx.AsyncClient(timeout=httpx.Timeout(settings.FIRECRAWL_TIMEOUT_S), follow_redirects=True),
        "agent": httpx.AsyncClient(
            base_url=settings.LANGGRAPH_API_URL,
            timeout=httpx.Timeout(settings.AGENT_PROXY_TIMEOUT_S, connect=10.0),
        ),
    }


def get_http(request: Request) -> httpx.AsyncClient:
    return request.app.state.http


def get_agent_client(request: Request) -> httpx.AsyncClient:
    return request.app.state.agent
