"""Helpers shared by the CLI command modules."""

import json
from dataclasses import asdict, is_dataclass
from datetime import date, datetime
from enum import Enum
from pathlib import Path
from typing import Any

import typer
import yaml

from deckoracle.application.config import AppConfig, resolve_config
from deckoracle.domain.study.models import Card, Deck


def _resolve_with_overrides(**overrides: Any) -> AppConfig:
    """Resolve config, letting non-None CLI values win over files and env."""
    try:
        return resolve_config(overrides)
    except ValueError as e:
        typer.secho(f"Invalid configuration: {e}", fg="red", err=True)
        raise typer.Exit(2) from e


def _json_default(value: Any) -> Any:
    if isinstance(value, (datetime, date)):
        return value.isoformat()
    if isinstance(value, Enum):
        return value.value
    if isinstance(value, Path):
        return str(value)
    raise TypeError(f"Not JSON serializable: {type(value).__name__}")


def to_json(value: Any) -> str:
    if is_dataclass(value):
        value = asdict(value)
    elif isinstance(value, list):
        value = [asdict(v) if is_dataclass(v) else v for v in value]
    return json.dumps(value, indent=2, default=_json_default)


def load_deck_file(path: Path) -> Deck:
    """
    Load a deck definition from YAML.

    Expected shape:
        deck_id: spanish-101
        name: Spanish 101
        cards:
          - id: c1
            front: hola
            back: hello
    """
    try:
        data = yaml.safe_load(path.read_text(encoding="utf-8")) or {}
    except yaml.YAMLError as e:
        raise typer.BadParameter(f"{path} is not valid YAML: {e}") from e

    if not isinstance(data, dict):
        raise typer.BadParameter(f"{path} must contain a mapping with 'deck_id' and 'cards'")

    raw_cards = data.get("cards") or []
    if not isinstance(raw_cards, list):
        raise typer.BadParameter(f"'cards' in {path} must be a list")

    cards = []
    for i, raw in enumerate(raw_cards):
        if not isinstance(raw, dict):
            raise typer.BadParameter(f"Card #{i + 1} in {path} must be a mapping")
        card_id = raw.get("id") or raw.get("card_id") or f"{path.stem}-{i + 1}"
        cards.append(
            Card(
                card_id=str(card_id),
                front=str(raw.get("front", "")),
                back=str(raw.get("back", "")),
                position=i,
            )
        )

    return Deck(
        deck_id=str(data.get("deck_id") or path.stem),
        name=str(data.get("name") or path.stem),
        cards=tuple(cards),
    )
