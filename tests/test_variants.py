"""
Tests de l'affectation déterministe des variantes A/B.

Vérifie la stabilité (stickiness), la convergence de la répartition, le rebattage par
expérience et la garde des affectations orphelines.
"""

from __future__ import annotations

import warnings

import pytest

from directive_engine.domain.errors import OrphanAssignmentWarning
from directive_engine.domain.models import ExperimentConfig
from directive_engine.domain.variants import VariantAssigner, sharding_pulse, sharding_seed
from directive_engine.infra.loader import record_to_context
from tests.fakes import make_record


def _context(split: float = 0.3, name: str = "tone-shift", active: bool = True, experimental=True):
    record = make_record(
        "acme",
        experimental_prompt="Answer in a warmer tone." if experimental else None,
        experiment_name=name,
        experiment_active=active,
        experiment_traffic_split=split,
    )
    return record_to_context(record)


def test_pulse_is_normalized() -> None:
    """Teste que le pulse reste dans [0, 1)."""
    for i in range(1000):
        pulse = sharding_pulse(f"seed-{i}")
        assert 0.0 <= pulse < 1.0


def test_assignment_is_deterministic() -> None:
    """Teste que 100 appels pour le même utilisateur donnent la même variante."""
    assigner = VariantAssigner()
    ctx = _context(split=0.5)
    first = assigner.choose(ctx, "user-42")
    for _ in range(100):
        again = assigner.choose(ctx, "user-42")
        assert again.variant == first.variant
        assert again.version == first.version
        assert again.pulse == first.pulse


def test_split_converges_over_large_population() -> None:
    """Teste que 100 000 utilisateurs à 30% donnent entre 29% et 31% de B."""
    in_b = sum(
        1
        for i in range(100_000)
        if sharding_pulse(sharding_seed("acme", f"user-{i}", "tone-shift")) < 0.30
    )
    assert 0.29 <= in_b / 100_000 <= 0.31


def test_choose_matches_pulse_threshold() -> None:
    """Teste que la variante choisie correspond au pulse calculé."""
    assigner = VariantAssigner()
    ctx = _context(split=0.3)
    for i in range(200):
        assignment = assigner.choose(ctx, f"user-{i}")
        expected = "B" if assignment.pulse < 0.3 else "A"
        assert assignment.variant == expected
        if expected == "B":
            assert assignment.version == ctx.experimental_version
        else:
            assert assignment.version == ctx.active_version


def test_new_experiment_reshuffles_groups() -> None:
    """Teste qu'un nouveau nom d'expérience rebat les groupes."""
    assigner = VariantAssigner()
    first = _context(split=0.5, name="tone-shift")
    second = _context(split=0.5, name="tone-shift-2")
    users = [f"user-{i}" for i in range(200)]
    moved = sum(
        1
        for u in users
        if assigner.choose(first, u).variant != assigner.choose(second, u).variant
    )
    assert moved > 0


def test_fast_path_without_active_experiment() -> None:
    """Teste qu'aucun hash n'est calculé sans expérience active."""
    assigner = VariantAssigner()
    inactive = _context(active=False)
    assignment = assigner.choose(inactive, "user-1")
    assert assignment.variant == "A"
    assert assignment.pulse is None

    no_experiment = inactive.model_copy(update={"experiment": None})
    assert assigner.assign(no_experiment, "user-1") == inactive.active_version


def test_split_bounds() -> None:
    """Teste les bornes 0.0 (tout A) et 1.0 (tout B)."""
    assigner = VariantAssigner()
    none_b = _context(split=0.0)
    all_b = _context(split=1.0)
    for i in range(100):
        assert assigner.choose(none_b, f"user-{i}").variant == "A"
        assert assigner.choose(all_b, f"user-{i}").variant == "B"


def test_orphan_assignment_warns_and_serves_production() -> None:
    """Teste qu'une expérience active sans version expérimentale sert la production."""
    seen = []
    assigner = VariantAssigner(on_orphan=seen.append)
    ctx = _context(split=1.0, experimental=False)

    with pytest.warns(OrphanAssignmentWarning):
        version = assigner.assign(ctx, "user-1")

    assert version == ctx.active_version
    assert seen == [ctx]


def test_orphan_guard_with_warnings_as_errors() -> None:
    """Teste que le filtre `error` des warnings n'interrompt pas l'affectation."""
    seen = []
    assigner = VariantAssigner(on_orphan=seen.append)
    ctx = _context(split=1.0, experimental=False)

    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assignment = assigner.choose(ctx, "user-1")

    assert assignment.variant == "A"
    assert assignment.version == ctx.active_version
    assert seen == [ctx]


def test_orphan_guard_silent_when_split_is_zero() -> None:
    """Teste qu'une part de trafic nulle ne déclenche pas la garde."""
    assigner = VariantAssigner()
    ctx = _context(split=0.0, experimental=False)
    with warnings.catch_warnings():
        warnings.simplefilter("error")
        assert assigner.choose(ctx, "user-1").variant == "A"


def test_experiment_name_minimum_length() -> None:
    """Teste qu'un nom d'expérience trop court est refusé."""
    with pytest.raises(ValueError):
        ExperimentConfig(experiment_name="abc")
