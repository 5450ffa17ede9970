"""Tests for the MCP tool functions (tools/*.py) and server composition root."""

from __future__ import annotations

from unittest.mock import AsyncMock, MagicMock

import httpx
import pytest

from dotget.resolvers.factory import ResolverFactory
from dotget.server import AppContext, app_lifespan
from dotget.tools._helpers import get_context
from dotget.tools.install import install_tool
from dotget.tools.list import list_tools
from dotget.tools.remove import remove_tool
from dotget.tools.update import update_tool

# --- Helpers ---------------------------------------------------------------


def _make_ctx(settings, registry) -> MagicMock:
    app = AppContext(
        http_client=MagicMock(spec=httpx.AsyncClient),
        settings=settings,
        factory=ResolverFactory(settings, registry),
    )
    ctx = MagicMock()
    ctx.request_context.lifespan_context = app
    ctx.info = AsyncMock()
    ctx.error = AsyncMock()
    return ctx


# --- Tools -----------------------------------------------------------------


class TestTools:
    async def test_install_list_update_remove(self, settings, registry):
        registry.add("foo", "1.0.0")
        ctx = _make_ctx(settings, registry)

        installed = await install_tool("foo", ctx, version="1.0.0")
        assert installed["success"] is True
        assert installed["bin_path"].endswith("foo")

        listed = await list_tools(ctx)
        assert listed == [{"name": "foo", "bin": "foo", "options": {"version": "1.0.0"}}]

        registry.add("foo", "1.1.0")
        updated = await update_tool("foo", ctx)
        assert updated["current_source"] == "foo@1.1.0"

        removed = await remove_tool("foo", ctx)
        assert removed["success"] is True
        assert await list_tools(ctx) == []

    async def test_install_error_returned_not_raised(self, settings, registry):
        ctx = _make_ctx(settings, registry)
        result = await install_tool("foo", ctx, options={"note": "a=:=b"})
        assert result["success"] is False
        assert "=:=" in result["error"]

    async def test_remove_rejects_path_traversal(self, settings, registry, tmp_path):
        victim = tmp_path / "precious.txt"
        victim.write_text("keep me")
        ctx = _make_ctx(settings, registry)

        result = await remove_tool("../../precious.txt", ctx)

        assert result["success"] is False
        assert "not a valid tool name" in result["error"]
        assert victim.exists()

    async def test_unexpected_error_reported(self, settings, registry):
        async def explode(*_args, **_kwargs):
            raise RuntimeError("boom")

        registry.search_metadata = explode
        ctx = _make_ctx(settings, registry)

        result = await install_tool("foo", ctx)

        assert result == {"success": False, "tool": "foo", "error": "Internal error: RuntimeError"}
        ctx.error.assert_awaited_once()


class TestGetContext:
    def test_wrong_lifespan_context(self):
        ctx = MagicMock()
        ctx.request_context.lifespan_context = object()
        with pytest.raises(TypeError, match="AppContext"):
            get_context(ctx)


class TestAppLifespan:
    async def test_builds_context(self, monkeypatch, tmp_path):
        monkeypatch.setenv("DOTGET_ROOT", str(tmp_path))
        monkeypatch.setenv("DOTGET_TIMEOUT", "7")

        async with app_lifespan(MagicMock()) as app:
            assert isinstance(app.http_client, httpx.AsyncClient)
            assert app.settings.install_root == tmp_path
            assert app.http_client.timeout.read == 7.0
            assert app.factory.http is app.http_client
