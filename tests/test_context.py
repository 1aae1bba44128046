from __future__ import annotations

from pathlib import Path

import click
import pytest
from click.testing import CliRunner

from depatlas.config import DepAtlasConfig
from depatlas.context import DepAtlasContext, pass_context


@pytest.mark.unit
class TestDepAtlasContext:
    """Tests for DepAtlasContext class."""

    def test_default_initialization(self) -> None:
        """Test DepAtlasContext initializes with correct default values."""
        ctx = DepAtlasContext()

        assert ctx.config_path is None
        assert ctx.verbose == 0
        assert ctx.color is True
        assert ctx.config == DepAtlasConfig()

    def test_instances_are_independent(self) -> None:
        ctx1 = DepAtlasContext()
        ctx2 = DepAtlasContext()

        ctx1.verbose = 2
        ctx1.config.exclude_dirs.append("vendor")

        assert ctx2.verbose == 0
        assert ctx2.config.exclude_dirs == []

    def test_slots_reject_unknown_attributes(self) -> None:
        ctx = DepAtlasContext()

        with pytest.raises(AttributeError):
            ctx.unknown = True  # type: ignore[attr-defined]

    def test_attributes_can_be_set(self) -> None:
        ctx = DepAtlasContext()
        ctx.config_path = Path("/tmp/depatlas.toml")
        ctx.color = False

        assert ctx.config_path == Path("/tmp/depatlas.toml")
        assert ctx.color is False


@pytest.mark.unit
class TestPassContext:
    """Tests for the pass_context decorator."""

    def test_creates_context_when_missing(self) -> None:
        """With ensure=True a fresh context is created for bare commands."""
        seen = []

        @click.command()
        @pass_context
        def command(ctx: DepAtlasContext) -> None:
            seen.append(ctx)

        result = CliRunner().invoke(command, [])

        assert result.exit_code == 0
        assert isinstance(seen[0], DepAtlasContext)

    def test_passes_existing_context(self) -> None:
        existing = DepAtlasContext()
        existing.verbose = 3
        seen = []

        @click.command()
        @pass_context
        def command(ctx: DepAtlasContext) -> None:
            seen.append(ctx)

        CliRunner().invoke(command, [], obj=existing)

        assert seen == [existing]
