"""Settings, display helpers and the CLI shell."""

import logging
import os
from pathlib import Path

import pytest
from sqlalchemy import func, select

from tally.config import DEFAULT_DATABASE_URL, Settings, load_settings
from tally.display import format_money, format_weight
from tally.store import MemoryStore, create_database
from tally.store._tables import OrderTable
from tally.orders import MemoryOrderStore
from tally.seed import seed_all
from tally.cli import Shell, run_cli

from tests._helpers import D


@pytest.fixture
def clean_env(monkeypatch: pytest.MonkeyPatch) -> pytest.MonkeyPatch:
    for key in ("TALLY_DATABASE_URL", "TALLY_CURRENCY", "TALLY_DECIMALS", "TALLY_LOG_LEVEL"):
        monkeypatch.delenv(key, raising=False)
    return monkeypatch


class TestSettings:
    def test_defaults(self, clean_env: pytest.MonkeyPatch) -> None:
        settings = load_settings(env_file=None)
        assert settings == Settings()
        assert settings.database_url == DEFAULT_DATABASE_URL
        assert settings.log_level_number == logging.INFO

    def test_from_environment(self, clean_env: pytest.MonkeyPatch) -> None:
        clean_env.setenv("TALLY_CURRENCY", "eur")
        clean_env.setenv("TALLY_DECIMALS", "3")
        clean_env.setenv("TALLY_LOG_LEVEL", "debug")
        clean_env.setenv("TALLY_DATABASE_URL", " ")

        settings = load_settings(env_file=None)
        assert settings.currency == "EUR"
        assert settings.decimals == 3
        assert settings.log_level_number == logging.DEBUG
        assert settings.database_url == DEFAULT_DATABASE_URL

    def test_env_file_does_not_override(self, clean_env: pytest.MonkeyPatch, tmp_path: Path) -> None:
        env_file = tmp_path / ".env"
        env_file.write_text("TALLY_CURRENCY=GBP\nTALLY_DECIMALS=0\n", encoding="utf-8")
        clean_env.setenv("TALLY_DECIMALS", "2")

        try:
            settings = load_settings(env_file)
        finally:
            os.environ.pop("TALLY_CURRENCY", None)

        assert settings.currency == "GBP"
        assert settings.decimals == 2

    @pytest.mark.parametrize("kwargs", [{"currency": "EURO"}, {"currency": "U5D"}, {"decimals": 5}])
    def test_invalid(self, kwargs: dict[str, object]) -> None:
        with pytest.raises(ValueError):
            Settings(**kwargs)  # type: ignore[arg-type]


class TestDisplay:
    def test_money(self) -> None:
        assert format_money(D("1234.5"), "USD") == "1,234.50 USD"
        assert format_money(D("43.975"), "USD") == "43.98 USD"
        assert format_money(D("7"), "JPY", 0) == "7 JPY"

    def test_weight(self) -> None:
        assert format_weight(D(250)) == "250 g"
        assert format_weight(D("1500")) == "1.50 kg"


class TestShell:
    @pytest.fixture
    def shell(self) -> Shell:
        return Shell(Settings(), seed_all(MemoryStore()), MemoryOrderStore())

    async def test_parse_items_prices_from_catalog(self, shell: Shell) -> None:
        lines = await shell.parse_items("tea:2,MUG:1")
        assert [(ln.product_id, ln.quantity, ln.unit_price) for ln in lines] == [
            ("TEA", 2, D("12.50")),
            ("MUG", 1, D("8.00")),
        ]

    async def test_parse_items_bad_format(self, shell: Shell) -> None:
        with pytest.raises(ValueError, match="expected PRODUCT:QTY"):
            await shell.parse_items("TEA")

    async def test_quote(self, shell: Shell, capsys: pytest.CaptureFixture[str]) -> None:
        await shell.cmd_quote("standard", "TEA:2,MUG:1", None)
        out = capsys.readouterr().out
        assert "43.98 USD" in out

    async def test_order(self, shell: Shell, capsys: pytest.CaptureFixture[str]) -> None:
        await shell.cmd_order("express", "TEA:1", "WELCOME5")
        out = capsys.readouterr().out
        assert "24.94 USD" in out
        assert len(shell.orders) == 1

    async def test_error_reported(self, shell: Shell, capsys: pytest.CaptureFixture[str]) -> None:
        await shell.cmd_quote("freight", "TEA:1", None)
        assert "DELIVERY_UNAVAILABLE" in capsys.readouterr().out


class TestRunCli:
    async def test_orders_written_to_configured_database(
        self,
        tmp_path: Path,
        monkeypatch: pytest.MonkeyPatch,
        capsys: pytest.CaptureFixture[str],
    ) -> None:
        url = f"sqlite+aiosqlite:///{tmp_path / 'orders.db'}"
        commands = iter(["order express TEA:1 WELCOME5", "quit"])
        monkeypatch.setattr("builtins.input", lambda prompt="": next(commands))

        await run_cli(Settings(database_url=url))
        assert "24.94 USD" in capsys.readouterr().out

        session_factory, engine = await create_database(url)
        try:
            async with session_factory() as session:
                assert await session.scalar(select(func.count()).select_from(OrderTable)) == 1
        finally:
            await engine.dispose()
