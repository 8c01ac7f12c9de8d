"""Sceau d'intégrité (empreinte SHA-256) des charges utiles de directive.

Fonction pure, sans I/O: sert à estampiller les entrées de cache et à les vérifier avant
usage. Les modèles pydantic sont sérialisés en JSON canonique (clés triées, séparateurs
compacts) pour que deux processus calculent le même sceau pour le même contenu.
"""

from __future__ import annotations

import hashlib
import hmac
import json
from typing import Any

from pydantic import BaseModel


def _canonical_bytes(data: Any) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, str):
        return data.encode("utf-8")
    if isinstance(data, BaseModel):
        data = data.model_dump(mode="json")
    return json.dumps(
        data, sort_keys=True, separators=(",", ":"), ensure_ascii=False, default=str
    ).encode("utf-8")


def seal(data: Any) -> str:
    """Retourne l'empreinte hexadécimale (64 caractères) de `data`."""
    return hashlib.sha256(_canonical_bytes(data)).hexdigest()


def verify_seal(data: Any, expected: str) -> bool:
    """Compare (temps constant) le sceau recalculé de `data` au sceau attendu."""
    return hmac.compare_digest(seal(data), expected or "")
