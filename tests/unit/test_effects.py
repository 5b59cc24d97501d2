"""
Unit tests for EffectPropagator.
"""

import pytest
from socketsmith.core.world import World
from socketsmith.sockets.effects import EffectPropagator, GemProvenance


@pytest.fixture
def world():
    world = World(':memory:')
    yield world
    world.close()


@pytest.fixture
def sword(world):
    return world.create_item({'name': 'Sword', 'type': 'weapon',
                              'effects': [{'name': 'Sharpness'}]})


@pytest.fixture
def ruby(world):
    return world.create_item({
        'name': 'Ruby',
        'type': 'loot',
        'img': 'icons/ruby.webp',
        'system': {'type': {'value': 'gem'}},
        'effects': [
            {'name': 'Fire Damage', 'disabled': True,
             'changes': [{'key': 'system.damage', 'value': '1d4[fire]'}]},
            {'name': '', 'img': None},
        ],
    })


class TestGemProvenance:
    """Test provenance records."""

    def test_round_trip_dict(self):
        provenance = GemProvenance('Item.ruby', 2)
        assert provenance.to_dict() == {'sourceGemUuid': 'Item.ruby', 'slotIndex': 2}
        assert GemProvenance.from_dict(provenance.to_dict()) == provenance

    @pytest.mark.parametrize('data', [None, 'x', {}, {'slotIndex': '1'}, {'slotIndex': True}])
    def test_from_dict_rejects(self, data):
        assert GemProvenance.from_dict(data) is None


class TestApplyGemEffects:
    """Test copying effects onto the host."""

    def test_copies_and_tags(self, sword, ruby):
        created = EffectPropagator.apply_gem_effects(sword, 1, ruby)

        assert len(created) == 2
        for effect in created:
            assert effect.transfer
            assert not effect.disabled
            assert effect.origin == sword.uuid
            assert GemProvenance.of(effect) == GemProvenance(ruby.uuid, 1)

    def test_fills_name_and_img(self, sword, ruby):
        created = EffectPropagator.apply_gem_effects(sword, 0, ruby)

        assert created[0].name == 'Fire Damage'
        assert created[1].name == 'Ruby'
        assert created[1].img == 'icons/ruby.webp'

    def test_new_ids(self, sword, ruby):
        source_ids = {e.id for e in ruby.effects}
        created = EffectPropagator.apply_gem_effects(sword, 0, ruby)
        assert not source_ids & {e.id for e in created}

    def test_gem_effects_untouched(self, sword, ruby):
        EffectPropagator.apply_gem_effects(sword, 0, ruby)

        assert len(ruby.effects) == 2
        assert ruby.effects[0].disabled

    def test_gem_without_effects(self, world, sword):
        plain = world.create_item({'name': 'Pebble', 'type': 'loot'})
        assert EffectPropagator.apply_gem_effects(sword, 0, plain) == []
        assert len(sword.effects) == 1


class TestRemoveGemEffects:
    """Test removing slot effects."""

    def test_removes_only_that_slot(self, sword, ruby):
        EffectPropagator.apply_gem_effects(sword, 0, ruby)
        EffectPropagator.apply_gem_effects(sword, 1, ruby)

        assert EffectPropagator.remove_gem_effects(sword, 0) == 2

        names = [e.name for e in sword.effects]
        assert 'Sharpness' in names
        assert len(EffectPropagator.effects_for_slot(sword, 1)) == 2
        assert EffectPropagator.effects_for_slot(sword, 0) == []

    def test_idempotent(self, sword, ruby):
        EffectPropagator.apply_gem_effects(sword, 0, ruby)
        EffectPropagator.remove_gem_effects(sword, 0)

        assert EffectPropagator.remove_gem_effects(sword, 0) == 0
        assert len(sword.effects) == 1

    def test_works_after_gem_deleted(self, world, sword, ruby):
        EffectPropagator.apply_gem_effects(sword, 0, ruby)
        world.storage.delete_items([ruby.id])

        assert EffectPropagator.remove_gem_effects(sword, 0) == 2


class TestShiftSlots:
    """Test renumbering after a slot is removed."""

    def test_shift(self, sword, ruby):
        EffectPropagator.apply_gem_effects(sword, 0, ruby)
        EffectPropagator.apply_gem_effects(sword, 2, ruby)

        EffectPropagator.shift_slots(sword, 1)

        assert len(EffectPropagator.effects_for_slot(sword, 0)) == 2
        assert len(EffectPropagator.effects_for_slot(sword, 1)) == 2
        assert EffectPropagator.effects_for_slot(sword, 2) == []
