"""Tests du sceau d'intégrité et des heuristiques de texte."""

from __future__ import annotations

import hashlib

from directive_engine.domain.integrity import seal, verify_seal
from directive_engine.domain.prompt import (
    cost_efficiency_score,
    estimate_token_weight,
    normalize_directive,
)
from directive_engine.infra.emergency import EmergencyDirectiveProvider


def test_seal_is_sha256_hex() -> None:
    """Teste que le sceau d'un texte est son SHA-256 hexadécimal."""
    assert seal("hello") == hashlib.sha256(b"hello").hexdigest()
    assert seal(b"hello") == seal("hello")
    assert len(seal("x")) == 64


def test_seal_is_canonical_for_mappings() -> None:
    """Teste que l'ordre des clés n'influence pas le sceau."""
    assert seal({"a": 1, "b": [1, 2]}) == seal({"b": [1, 2], "a": 1})
    assert seal({"a": 1}) != seal({"a": 2})


def test_seal_of_model_matches_its_json_dump() -> None:
    """Teste qu'un modèle est scellé via sa forme JSON."""
    ctx = EmergencyDirectiveProvider().build("acme")
    assert seal(ctx) == seal(ctx.model_dump(mode="json"))
    assert seal(ctx) != seal(EmergencyDirectiveProvider().build("other"))


def test_verify_seal() -> None:
    """Teste la vérification du sceau."""
    expected = seal("payload")
    assert verify_seal("payload", expected) is True
    assert verify_seal("payload!", expected) is False
    assert verify_seal("payload", None) is False


def test_normalize_directive() -> None:
    """Teste la compaction des espaces."""
    assert normalize_directive("  a \n\n b\t\tc  ") == "a b c"
    assert normalize_directive("") == ""


def test_token_weight_and_efficiency() -> None:
    """Teste le poids estimé et le score d'efficacité à seuil."""
    assert estimate_token_weight("") == 0
    assert estimate_token_weight("abcd") == 2
    assert estimate_token_weight("a" * 37) == 10
    assert cost_efficiency_score(1200) == 98
    assert cost_efficiency_score(1201) == 55
