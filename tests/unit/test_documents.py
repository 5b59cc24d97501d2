"""
Unit tests for documents and the World resolver.
"""

import pytest
from socketsmith.core.documents import apply_update, get_property, set_property
from socketsmith.core.world import World


@pytest.fixture
def world():
    """Create an in-memory world for testing."""
    world = World(':memory:')
    yield world
    world.close()


@pytest.fixture
def hero(world):
    return world.create_actor('Theron')


class TestPropertyPaths:
    """Test dotted-path helpers."""

    def test_get_property(self):
        data = {'system': {'type': {'value': 'gem'}}}
        assert get_property(data, 'system.type.value') == 'gem'
        assert get_property(data, 'system.missing', 'x') == 'x'
        assert get_property(data, 'system.type.value.deeper') is None

    def test_set_property_creates_parents(self):
        data = {}
        set_property(data, 'flags.socketsmith.sockets', [])
        assert data == {'flags': {'socketsmith': {'sockets': []}}}

    def test_apply_update_deletes_with_prefix(self):
        data = {'system': {'activities': {'a': {}, 'b': {}}}}
        apply_update(data, {'system.activities.-=a': None, 'system.quantity': 2})

        assert data == {'system': {'activities': {'b': {}}, 'quantity': 2}}

    def test_apply_update_delete_missing_key(self):
        data = {'flags': {}}
        apply_update(data, {'flags.socketsmith.-=sockets': None})
        assert data == {'flags': {}}

    def test_apply_update_copies_values(self):
        value = {'nested': [1]}
        data = {}
        apply_update(data, {'a': value})
        value['nested'].append(2)
        assert data['a'] == {'nested': [1]}


class TestItemDocument:
    """Test item documents."""

    def test_create_item_defaults(self, world, hero):
        item = world.create_item({'name': 'Sword', 'type': 'weapon'}, actor=hero)

        assert len(item.id) == 16
        assert item.uuid == f"Actor.{hero.id}.Item.{item.id}"
        assert item.source['flags'] == {}
        assert item.source['ownership'] == {'default': 0}
        assert 'createdTime' in item.source['_stats']
        assert item.quantity == 1

    def test_incoming_id_replaced(self, world):
        item = world.create_item({'_id': 'fixed', 'name': 'Ruby'})
        assert item.id != 'fixed'
        assert item.uuid == f"Item.{item.id}"

    def test_flags(self, world):
        item = world.create_item({'name': 'Sword', 'type': 'weapon'})

        item.set_flag('socketsmith', 'sockets', [{'gem': None, 'name': 'Empty'}])
        assert item.get_flag('socketsmith', 'sockets') == [{'gem': None, 'name': 'Empty'}]

        item.unset_flag('socketsmith', 'sockets')
        assert item.get_flag('socketsmith', 'sockets', 'gone') == 'gone'

    def test_get_flag_returns_copy(self, world):
        item = world.create_item({'name': 'Sword', 'flags': {'socketsmith': {'sockets': []}}})

        item.get_flag('socketsmith', 'sockets').append('junk')

        assert item.get_flag('socketsmith', 'sockets') == []

    def test_update_persists(self, world):
        item = world.create_item({'name': 'Ruby', 'system': {'quantity': 3}})
        item.update({'system.quantity': 2})

        assert world.get_item(item.id).quantity == 2

    def test_refresh(self, world):
        item = world.create_item({'name': 'Ruby'})
        other = world.get_item(item.id)
        other.update({'name': 'Cut Ruby'})

        assert item.refresh().name == 'Cut Ruby'

    def test_embedded_effects(self, world):
        item = world.create_item({
            'name': 'Ruby',
            'effects': [{'name': 'Fire', 'changes': [{'key': 'dmg', 'value': '1d4'}]}],
        })

        effects = item.effects
        assert len(effects) == 1
        assert effects[0].name == 'Fire'
        assert effects[0].uuid == f"{item.uuid}.ActiveEffect.{effects[0].id}"
        assert 'effects' not in item.source

    def test_effect_name_defaults_to_item_name(self, world):
        item = world.create_item({'name': 'Ruby'})
        created = item.create_effects([{}])
        assert created[0].name == 'Ruby'

    def test_delete_effects(self, world):
        item = world.create_item({'name': 'Ruby', 'effects': [{'name': 'A'}, {'name': 'B'}]})
        first = item.effects[0]

        assert item.delete_effects([first.id]) == 1
        assert [e.name for e in item.effects] == ['B']

    def test_to_object_includes_effects(self, world):
        item = world.create_item({'name': 'Ruby', 'effects': [{'name': 'Fire'}]})
        data = item.to_object()

        assert data['name'] == 'Ruby'
        assert data['effects'][0]['name'] == 'Fire'

    def test_supports_activities(self, world):
        weapon = world.create_item({'name': 'Sword', 'type': 'weapon',
                                    'system': {'activities': {}}})
        loot = world.create_item({'name': 'Ruby', 'type': 'loot'})

        assert weapon.supports_activities()
        assert not loot.supports_activities()

    def test_actor_property(self, world, hero):
        owned = world.create_item({'name': 'Sword'}, actor=hero)
        loose = world.create_item({'name': 'Ruby'})

        assert owned.actor.id == hero.id
        assert loose.actor is None


class TestActorDocument:
    """Test actor documents."""

    def test_items(self, world, hero):
        world.create_item({'name': 'Sword'}, actor=hero)
        world.create_item({'name': 'Ruby'}, actor=hero)
        world.create_item({'name': 'Loose'})

        assert [item.name for item in hero.items] == ['Sword', 'Ruby']

    def test_get_item_checks_owner(self, world, hero):
        other = world.create_actor('Mira')
        item = world.create_item({'name': 'Sword'}, actor=other)

        assert hero.get_item(item.id) is None
        assert other.get_item(item.id).name == 'Sword'

    def test_delete_items(self, world, hero):
        item = world.create_item({'name': 'Ruby'}, actor=hero)
        hero.delete_items([item.id])
        assert hero.items == []

    def test_delete_unowned_item_raises(self, world, hero):
        item = world.create_item({'name': 'Ruby'})
        with pytest.raises(KeyError):
            hero.delete_items([item.id])


class TestFromUuid:
    """Test World.from_uuid resolution."""

    def test_actor(self, world, hero):
        assert world.from_uuid(hero.uuid).name == 'Theron'

    def test_owned_item(self, world, hero):
        item = world.create_item({'name': 'Sword'}, actor=hero)
        resolved = world.from_uuid(item.uuid)

        assert resolved.document_name == 'Item'
        assert resolved.id == item.id

    def test_world_item(self, world):
        item = world.create_item({'name': 'Ruby'})
        assert world.from_uuid(f"Item.{item.id}").name == 'Ruby'

    def test_owned_item_needs_actor_prefix(self, world, hero):
        item = world.create_item({'name': 'Sword'}, actor=hero)
        assert world.from_uuid(f"Item.{item.id}") is None

    def test_effect(self, world):
        item = world.create_item({'name': 'Ruby', 'effects': [{'name': 'Fire'}]})
        effect = item.effects[0]

        resolved = world.from_uuid(effect.uuid)
        assert resolved.document_name == 'ActiveEffect'
        assert resolved.id == effect.id

    @pytest.mark.parametrize('uuid', [None, '', 'Actor', 'Scene.abc', 'Item.missing',
                                      'Actor.missing.Item.x', 'Item.a.Item'])
    def test_unresolvable(self, world, uuid):
        assert world.from_uuid(uuid) is None


class TestWorldDirectory:
    """Test world directories on disk."""

    def test_initialize_and_open(self, tmp_path):
        path = tmp_path / 'demo'
        world = World.initialize_world(str(path), 'Demo')
        hero = world.create_actor('Theron')
        world.close()

        reopened = World.open(str(path))
        assert reopened.name == 'Demo'
        assert [a.name for a in reopened.list_actors()] == ['Theron']
        assert reopened.get_actor(hero.id) is not None
        reopened.close()

    def test_initialize_twice_raises(self, tmp_path):
        World.initialize_world(str(tmp_path), 'Demo').close()
        with pytest.raises(ValueError):
            World.initialize_world(str(tmp_path), 'Demo')

    def test_open_missing_raises(self, tmp_path):
        with pytest.raises(ValueError):
            World.open(str(tmp_path / 'nowhere'))
