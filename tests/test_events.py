"""Tests for moldfront.events and the effect registry."""

from collections import Counter

import pytest

from moldfront.effects.registry import DEFAULT_EFFECTS, register_default_effects
from moldfront.events.bus import (
    EffectCoordinator,
    GameEvent,
    MutationPhaseStart,
    PreGrowthPhase,
)
from moldfront.simulation.context import GameContext


class TestEffectCoordinator:
    """Tests for handler registration and dispatch."""

    def test_handlers_run_in_subscription_order(self) -> None:
        bus = EffectCoordinator()
        calls: list[str] = []
        bus.subscribe(GameEvent.PRE_GROWTH_PHASE, lambda e: calls.append("first"))
        bus.subscribe(GameEvent.PRE_GROWTH_PHASE, lambda e: calls.append("second"))
        bus.publish(PreGrowthPhase(round=3))
        assert calls == ["first", "second"]

    def test_only_matching_event_dispatched(self) -> None:
        bus = EffectCoordinator()
        calls: list[object] = []
        bus.subscribe(GameEvent.PRE_GROWTH_PHASE, calls.append)
        bus.publish(MutationPhaseStart(round=1))
        assert calls == []

    def test_publish_returns_payload(self) -> None:
        bus = EffectCoordinator()
        payload = MutationPhaseStart(round=2)
        assert bus.publish(payload) is payload

    def test_publish_rejects_non_payload(self) -> None:
        bus = EffectCoordinator()
        with pytest.raises(TypeError):
            bus.publish("not an event")

    def test_unsubscribe(self) -> None:
        bus = EffectCoordinator()
        calls: list[object] = []
        bus.subscribe(GameEvent.DECAY_PHASE, calls.append)
        bus.unsubscribe(GameEvent.DECAY_PHASE, calls.append)
        assert bus.handler_count(GameEvent.DECAY_PHASE) == 0
        with pytest.raises(ValueError):
            bus.unsubscribe(GameEvent.DECAY_PHASE, calls.append)

    def test_reentrant_publish(self) -> None:
        bus = EffectCoordinator()
        rounds: list[int] = []
        bus.subscribe(
            GameEvent.MUTATION_PHASE_START,
            lambda e: bus.publish(PreGrowthPhase(e.round)),
        )
        bus.subscribe(GameEvent.PRE_GROWTH_PHASE, lambda e: rounds.append(e.round))
        bus.publish(MutationPhaseStart(round=7))
        assert rounds == [7]


class TestRegistry:
    """Tests for register_default_effects."""

    def test_every_handler_registered(self, context: GameContext) -> None:
        register_default_effects(context)
        expected = Counter(event for event, _ in DEFAULT_EFFECTS)
        for event in GameEvent:
            assert context.events.handler_count(event) == expected.get(event, 0)

    def test_decay_phase_order(self) -> None:
        names = [
            handler.__name__
            for event, handler in DEFAULT_EFFECTS
            if event is GameEvent.DECAY_PHASE
        ]
        assert names == [
            "sporocidal_bloom",
            "mycotoxin_tracer",
            "mycotoxin_potentiation",
            "necrophytic_bloom_activation",
        ]

    def test_registration_is_per_game(self, context: GameContext) -> None:
        other = EffectCoordinator()
        register_default_effects(context)
        assert other.handler_count(GameEvent.CELL_DEATH) == 0
