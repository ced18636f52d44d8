"""
Tests for the ResourceLedger.
"""

import pytest

from ..engine_core.errors import InvalidAmount
from ..engine_core.resources import ResourceData, ResourceLedger
from ..engine_core.rules import DAILY_THINK_CHARGES, INITIAL_REPUTATION, INITIAL_REWIND_CHARGES, ReputationLevel


class TestDefaults:
    def test_initial_values(self):
        """A fresh ledger uses the rule defaults."""
        ledger = ResourceLedger()
        assert ledger.gold == 0
        assert ledger.reputation == INITIAL_REPUTATION
        assert ledger.rewind_charges == INITIAL_REWIND_CHARGES
        assert ledger.think_charges == DAILY_THINK_CHARGES

    def test_construction_clamps(self):
        """Out-of-range starting data is clamped."""
        ledger = ResourceLedger(ResourceData(gold=-5, reputation=150, golden_dice=-1))
        assert ledger.gold == 0
        assert ledger.reputation == 100
        assert ledger.golden_dice == 0


class TestClamping:
    """Values never leave their bounds."""

    def test_gold_floors_at_zero(self, resources, recorder):
        """A large loss empties the purse; the event reports the real delta."""
        assert resources.add_gold(-100) == 0
        event = recorder.of("resource:gold_change")[0]
        assert event.payload == {"amount": -30, "new_total": 0}

    def test_reputation_bounds(self, resources, recorder):
        """Reputation stays within 0..100."""
        assert resources.add_reputation(80) == 100
        assert resources.add_reputation(-500) == 0
        amounts = [e.payload["amount"] for e in recorder.of("resource:reputation_change")]
        assert amounts == [50, -100]

    def test_no_event_without_change(self, resources, recorder):
        """Clamped no-ops publish nothing."""
        resources.add_golden_dice(-3)
        resources.add_gold(0)
        assert recorder.events == []

    def test_golden_dice_and_rewinds(self, resources):
        """Golden dice and rewind charges floor at zero."""
        assert resources.add_golden_dice(2) == 2
        assert resources.add_golden_dice(-5) == 0
        assert resources.add_rewind_charges(-10) == 0


class TestSpending:
    """Spend operations report insufficiency with False."""

    def test_remove_gold(self, resources):
        assert resources.remove_gold(10)
        assert resources.gold == 20
        assert resources.remove_gold(21) is False
        assert resources.gold == 20

    def test_negative_amounts_raise(self, resources):
        """Negative spends are caller errors."""
        with pytest.raises(InvalidAmount):
            resources.remove_gold(-1)
        with pytest.raises(InvalidAmount):
            resources.use_golden_dice(-1)
        with pytest.raises(ValueError):
            resources.remove_gold(-1)

    def test_use_golden_dice(self, resources):
        resources.add_golden_dice(1)
        assert resources.use_golden_dice(1)
        assert resources.use_golden_dice(1) is False

    def test_use_rewind(self):
        ledger = ResourceLedger(ResourceData(rewind_charges=1))
        assert ledger.use_rewind()
        assert ledger.use_rewind() is False

    def test_think_charges(self, resources, recorder):
        """Think charges run out and reset daily."""
        for _ in range(DAILY_THINK_CHARGES):
            assert resources.use_think_charge()
        assert resources.use_think_charge() is False
        resources.reset_think_charges()
        assert resources.think_charges == DAILY_THINK_CHARGES
        assert "think:reset" in recorder.names()


class TestSettersAndLevels:
    def test_setters_clamp(self, resources):
        resources.set_gold(-4)
        assert resources.gold == 0
        resources.set_reputation(300)
        assert resources.reputation == 100
        resources.set_think_charges(-2)
        assert resources.think_charges == 0

    @pytest.mark.parametrize("reputation,level", [
        (0, ReputationLevel.HUMBLE),
        (19, ReputationLevel.HUMBLE),
        (20, ReputationLevel.COMMON),
        (50, ReputationLevel.RESPECTED),
        (79, ReputationLevel.PROMINENT),
        (100, ReputationLevel.LEGENDARY),
    ])
    def test_reputation_level(self, reputation, level):
        assert ResourceLedger(ResourceData(reputation=reputation)).reputation_level() == level


class TestState:
    def test_round_trip(self, resources):
        """to_data/from_data preserve every value."""
        resources.add_golden_dice(2)
        copy = ResourceLedger.from_data(resources.to_data())
        assert copy.to_data() == resources.to_data()

    def test_clone_is_detached(self, resources):
        """Changing a clone leaves the original alone."""
        clone = resources.clone()
        clone.add_gold(100)
        assert resources.gold == 30
