"""
Unit tests for job handler loading.
"""

import pytest

from sqsjobs.worker.handlers import load_handler, log_job


class TestLoadHandler:
    """Tests for load_handler."""

    def test_load_builtin_handler(self):
        handler = load_handler("sqsjobs.worker.handlers:log_job")

        assert handler is log_job

    def test_load_stdlib_callable(self):
        handler = load_handler("json:dumps")

        assert handler({"a": 1}) == '{"a": 1}'

    @pytest.mark.parametrize("path", ["sqsjobs.worker.handlers", ":log_job", "json:"])
    def test_malformed_path(self, path: str):
        with pytest.raises(ValueError, match="module:function"):
            load_handler(path)

    def test_not_callable(self):
        with pytest.raises(ValueError, match="not a callable"):
            load_handler("sqsjobs.constants:PURGE_URL_MARKER")

    def test_missing_module(self):
        with pytest.raises(ModuleNotFoundError):
            load_handler("sqsjobs.does_not_exist:handler")


class TestBuiltinHandlers:
    """Tests for built-in handlers."""

    @pytest.mark.asyncio
    async def test_log_job_succeeds(self, caplog):
        with caplog.at_level("INFO", logger="sqsjobs.worker.handlers"):
            result = await log_job({"a": 1})

        assert result is None
        assert "Job received" in caplog.text
