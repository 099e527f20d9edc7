"""Ingestion helpers."""

from __future__ import annotations

import pathlib
from dataclasses import dataclass, field

import yaml

COLLECTIONS_PATH = pathlib.Path(__file__).with_name("collections.yml")


@dataclass(slots=True)
class CollectionSpec:
    kind: str
    endpoint: str
    params: dict[str, str] = field(default_factory=dict)


def load_collections(path: pathlib.Path = COLLECTIONS_PATH) -> dict[str, CollectionSpec]:
    data = yaml.safe_load(path.read_text())
    specs = [CollectionSpec(**item) for item in data]
    return {spec.kind: spec for spec in specs}
