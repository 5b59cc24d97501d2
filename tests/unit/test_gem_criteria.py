"""
Unit tests for gem classification and gem/host compatibility.
"""

import pytest
from socketsmith.core.world import World
from socketsmith.sockets.gem_criteria import GemClassifier, gem_fits_host, host_type_keys
from socketsmith.sockets.settings import SocketSettings


@pytest.fixture
def world():
    world = World(':memory:')
    yield world
    world.close()


@pytest.fixture
def classifier():
    return GemClassifier(SocketSettings(gem_subtypes=('gem', 'rune')))


def gem_data(subtype='gem', **extra):
    data = {'name': 'Ruby', 'type': 'loot', 'system': {'type': {'value': subtype}}}
    data.update(extra)
    return data


class TestGemClassifier:
    """Test GemClassifier.matches."""

    def test_gem_document(self, world, classifier):
        assert classifier.matches(world.create_item(gem_data()))

    def test_raw_data(self, classifier):
        assert classifier.matches(gem_data('rune'))

    def test_subtype_case_insensitive(self, classifier):
        assert classifier.matches(gem_data('  GEM '))

    def test_callable(self, classifier):
        assert classifier(gem_data())

    @pytest.mark.parametrize('data', [
        gem_data('trinket'),
        {'name': 'Ruby', 'type': 'weapon', 'system': {'type': {'value': 'gem'}}},
        {'name': 'Ruby', 'type': 'loot'},
        {'name': 'Ruby', 'type': 'loot', 'system': {'type': {'value': 3}}},
        None,
        'Item.abc',
    ])
    def test_not_gems(self, classifier, data):
        assert not classifier.matches(data)

    def test_actor_is_not_a_gem(self, world, classifier):
        assert not classifier.matches(world.create_actor('Theron'))

    def test_custom_loot_type(self):
        classifier = GemClassifier(SocketSettings(loot_type='treasure'))
        assert classifier.matches({'type': 'treasure', 'system': {'type': {'value': 'gem'}}})

    def test_loot_type_case_insensitive(self):
        classifier = GemClassifier(SocketSettings(loot_type='Treasure'))

        assert classifier.matches({'type': ' TREASURE', 'system': {'type': {'value': 'gem'}}})
        assert classifier.matches({'type': 'treasure', 'system': {'type': {'value': 'Gem'}}})
        assert not classifier.matches(gem_data())


class TestSocketable:
    """Test GemClassifier.is_socketable."""

    @pytest.mark.parametrize('item_type,expected', [
        ('weapon', True),
        ('equipment', True),
        ('Weapon', True),
        ('loot', False),
        ('consumable', False),
    ])
    def test_default_types(self, classifier, item_type, expected):
        assert classifier.is_socketable({'type': item_type}) is expected

    def test_configured_types(self):
        classifier = GemClassifier(SocketSettings(socketable_types=('tool',)))
        assert classifier.is_socketable({'type': 'tool'})
        assert not classifier.is_socketable({'type': 'weapon'})


class TestCompatibility:
    """Test gem_fits_host and host_type_keys."""

    def test_host_type_keys(self):
        host = {'type': 'weapon', 'system': {'type': {'value': 'martialM', 'subtype': 'sword'}}}
        assert host_type_keys(host) == ['weapon:martialM', 'weapon:sword', 'weapon']

    def test_host_type_keys_plain(self):
        assert host_type_keys({'type': 'equipment'}) == ['equipment']

    def test_unrestricted_gem_fits_anything(self):
        assert gem_fits_host(gem_data(), {'type': 'equipment'})

    def test_all_keyword(self):
        gem = gem_data(flags={'socketsmith': {'allowedTypes': ['all']}})
        assert gem_fits_host(gem, {'type': 'equipment'})

    def test_empty_list_fits_anything(self):
        gem = gem_data(flags={'socketsmith': {'allowedTypes': []}})
        assert gem_fits_host(gem, {'type': 'equipment'})

    def test_restricted_by_type(self):
        gem = gem_data(flags={'socketsmith': {'allowedTypes': ['weapon']}})
        assert gem_fits_host(gem, {'type': 'weapon'})
        assert not gem_fits_host(gem, {'type': 'equipment'})

    def test_restricted_by_subtype(self):
        gem = gem_data(flags={'socketsmith': {'allowedTypes': ['equipment:shield']}})
        shield = {'type': 'equipment', 'system': {'type': {'value': 'shield'}}}
        armor = {'type': 'equipment', 'system': {'type': {'value': 'heavy'}}}

        assert gem_fits_host(gem, shield)
        assert not gem_fits_host(gem, armor)

    def test_missing_documents(self):
        assert not gem_fits_host(None, {'type': 'weapon'})
        assert not gem_fits_host(gem_data(), None)
