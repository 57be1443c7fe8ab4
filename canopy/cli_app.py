"""
Canopy Command-Line Interface.

Provides the ``canopy`` entry point with three commands:

- ``canopy init``    : generate a starter recipe YAML with all defaults
- ``canopy list``    : list the registered architectures
- ``canopy inspect`` : build a network from a YAML recipe, log its per-stage
  summary and run a dry forward pass

Usage:
    canopy init
    canopy inspect recipe.yaml
    canopy inspect recipe.yaml --set name=seresnext50_32x4d --set output_stride=16
"""

from __future__ import annotations

from pathlib import Path
from typing import Annotated, Any

import typer

app = typer.Typer(
    name="canopy",
    add_completion=True,
    rich_markup_mode="rich",
    no_args_is_help=True,
)


# ── App callback ────────────────────────────────────────────────────────────


def _version_callback(value: bool) -> None:
    """Print version and exit."""
    if value:
        from importlib.metadata import version as pkg_version

        typer.echo(f"canopy {pkg_version('canopy')}")
        raise typer.Exit()


@app.callback()
def main(
    _: Annotated[
        bool | None,
        typer.Option(
            "--version",
            "-V",
            callback=_version_callback,
            is_eager=True,
            help="Show version and exit.",
        ),
    ] = None,
) -> None:
    """Canopy: residual and dense CNN architectures assembled from typed recipes."""
    ...  # pragma: no cover


# ── Commands ────────────────────────────────────────────────────────────────


@app.command()
def init(
    output: Annotated[
        Path,
        typer.Argument(help="Output YAML file path."),
    ] = Path("recipe.yaml"),
    force: Annotated[
        bool,
        typer.Option("--force", "-f", help="Overwrite existing file."),
    ] = False,
) -> None:
    """Generate a starter recipe with all config fields and defaults."""
    from canopy.core.io import save_config_as_yaml

    if output.exists() and not force:
        typer.echo(f"Error: '{output}' already exists. Use --force to overwrite.", err=True)
        raise typer.Exit(code=1)

    save_config_as_yaml(
        _build_init_dict(), output, header=_INIT_HEADER.format(filename=output.name)
    )
    typer.echo(f"Recipe created: {output}")
    typer.echo(f"Inspect it with: canopy inspect {output}")


@app.command("list")
def list_models() -> None:
    """List the registered architecture identifiers."""
    from canopy.architectures import available_models

    for name in available_models():
        typer.echo(name)


@app.command()
def inspect(
    recipe: Annotated[
        Path,
        typer.Argument(help="Path to YAML recipe file."),
    ],
    set_: Annotated[
        list[str] | None,
        typer.Option(
            "--set",
            help="Override config value (repeatable): key.path=value",
        ),
    ] = None,
    resolution: Annotated[
        int,
        typer.Option("--resolution", "-r", min=32, help="Spatial size of the sample input."),
    ] = 224,
    log_dir: Annotated[
        Path | None,
        typer.Option("--log-dir", help="Also write the log to a rotating file in this directory."),
    ] = None,
    log_level: Annotated[
        str,
        typer.Option("--log-level", help="DEBUG, INFO, WARNING, ERROR or CRITICAL."),
    ] = "INFO",
) -> None:
    """Build the network described by a recipe and check a forward pass."""
    from pydantic import ValidationError

    from canopy import LOGGER_NAME, CanopyError, Logger

    if not recipe.exists():
        typer.echo(f"Error: recipe not found: {recipe}", err=True)
        raise typer.Exit(code=1)

    overrides = _parse_overrides(set_ or [])
    run_logger = Logger.setup(name=LOGGER_NAME, log_dir=log_dir, level=log_level)
    try:
        _inspect(recipe, overrides, resolution, run_logger)
    except (CanopyError, ValidationError) as e:
        typer.echo(f"Error: {e}", err=True)
        raise typer.Exit(code=1)
    finally:
        Logger.reset(LOGGER_NAME)


# ── Private helpers ─────────────────────────────────────────────────────────


def _inspect(recipe: Path, overrides: dict[str, Any], resolution: int, run_logger) -> None:
    """Build the recipe's network, log its summary and run one sample batch."""
    import torch

    from canopy import LogStyle, NetworkConfig, get_model, log_forward_check, log_network_summary

    cfg = NetworkConfig.from_recipe(recipe, overrides=overrides or None)
    LogStyle.log_phase_header(run_logger, f"INSPECT {recipe.name.upper()}")
    model = get_model(cfg)
    log_network_summary(model, cfg.name, logger_instance=run_logger)

    sample = torch.randn(1, cfg.in_channels, resolution, resolution)
    model.eval()
    with torch.no_grad():
        output = model(sample)
    log_forward_check(sample.shape, output.shape, logger_instance=run_logger)


_INIT_HEADER = """\
# ==============================================================================
# Canopy: Starter Recipe (generated by `canopy init`)
# ==============================================================================
# Usage:   canopy inspect {filename}
#
# 'name' selects a registered architecture (see `canopy list`). Set it to
# 'custom' to assemble a network from block_kind / layers / channels.
# Set block.attention to {{reduction: 16}} to enable squeeze-excite.
# ==============================================================================

"""


def _auto_cast(value: str) -> Any:
    """
    Cast a CLI string to the appropriate Python scalar type.

    Args:
        value: Raw string from the command line.

    Returns:
        Converted bool, None, int, float, or the original string.
    """
    low = value.lower()
    if low in ("true", "false"):
        return low == "true"
    if low in ("null", "none"):
        return None
    try:
        return int(value)
    except ValueError:
        pass
    try:
        return float(value)
    except ValueError:
        pass
    return value


def _parse_overrides(raw: list[str]) -> dict[str, Any]:
    """
    Parse ``key.path=value`` strings into a flat override dict.

    Args:
        raw: list of "dotted.key=value" strings from ``--set`` flags.

    Returns:
        dict mapping dotted keys to auto-casted values.

    Raises:
        typer.BadParameter: If an item has no ``=`` or an empty key.
    """
    overrides: dict[str, Any] = {}
    for item in raw:
        if "=" not in item:
            raise typer.BadParameter(f"Override must use key=value format, got: '{item}'")
        key, _, val = item.partition("=")
        key = key.strip()
        if not key:
            raise typer.BadParameter(f"Empty key in override: '{item}'")
        overrides[key] = _auto_cast(val.strip())
    return overrides


def _build_init_dict() -> dict[str, Any]:
    """
    Build a complete config dict with all defaults for recipe generation.

    Returns:
        ``NetworkConfig()`` dumped via ``model_dump(mode="json")``.
    """
    from canopy.core.config import NetworkConfig

    return NetworkConfig().model_dump(mode="json")
