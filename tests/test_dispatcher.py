import gc

import pytest

from milkyviz.dispatcher import (
    MAX_OBJECT_ID,
    PLUGIN_OBJECT_ID,
    RESERVED_IDS,
    Dispatcher,
)


class Dummy:
    pass


def test_allocated_ids_are_unique_ascending_and_not_reserved():
    dispatcher = Dispatcher()
    objects = [Dummy() for _ in range(5)]
    ids = [dispatcher.register_object(obj) for obj in objects]
    assert len(set(ids)) == len(ids)
    assert ids == sorted(ids)
    assert not RESERVED_IDS.intersection(ids)


def test_find_returns_registered_object():
    dispatcher = Dispatcher()
    obj = Dummy()
    object_id = dispatcher.register_object(obj)
    assert dispatcher.find_object(object_id) is obj


def test_find_unknown_returns_none():
    dispatcher = Dispatcher()
    assert dispatcher.find_object(12345) is None


def test_explicit_id_is_used():
    dispatcher = Dispatcher()
    obj = Dummy()
    assert dispatcher.register_object(obj, PLUGIN_OBJECT_ID) == PLUGIN_OBJECT_ID
    assert dispatcher.find_object(PLUGIN_OBJECT_ID) is obj


def test_duplicate_explicit_id_raises():
    dispatcher = Dispatcher()
    dispatcher.register_object(Dummy(), PLUGIN_OBJECT_ID)
    with pytest.raises(ValueError):
        dispatcher.register_object(Dummy(), PLUGIN_OBJECT_ID)


def test_explicit_id_out_of_range_raises():
    dispatcher = Dispatcher()
    with pytest.raises(ValueError):
        dispatcher.register_object(Dummy(), MAX_OBJECT_ID + 1)


def test_explicit_id_is_not_auto_allocated():
    dispatcher = Dispatcher()
    keep = [Dummy() for _ in range(11)]
    taken = dispatcher.register_object(keep[0], 5)
    ids = [dispatcher.register_object(obj) for obj in keep[1:]]
    assert taken not in ids


def test_unregister_removes_object():
    dispatcher = Dispatcher()
    obj = Dummy()
    object_id = dispatcher.register_object(obj)
    dispatcher.unregister_object(object_id)
    assert dispatcher.find_object(object_id) is None
    with pytest.raises(KeyError):
        dispatcher.unregister_object(object_id)


def test_freed_id_is_not_reused_immediately():
    dispatcher = Dispatcher()
    first, second, third = Dummy(), Dummy(), Dummy()
    first_id = dispatcher.register_object(first)
    second_id = dispatcher.register_object(second)
    dispatcher.unregister_object(first_id)
    third_id = dispatcher.register_object(third)
    assert third_id != first_id
    assert third_id > second_id


def test_freed_ids_are_reused_past_the_maximum():
    dispatcher = Dispatcher(hint_maximum_id=10)
    objects = [Dummy() for _ in range(9)]
    ids = [dispatcher.register_object(obj) for obj in objects]
    assert max(ids) <= 10
    freed = set(ids[:-1])
    for object_id in freed:
        dispatcher.unregister_object(object_id)
    newcomer = Dummy()
    assert dispatcher.register_object(newcomer) in freed


def test_maximum_grows_when_few_ids_are_free():
    dispatcher = Dispatcher(hint_maximum_id=4)
    objects = [Dummy() for _ in range(5)]
    ids = [dispatcher.register_object(obj) for obj in objects[:4]]
    assert ids == sorted(ids)
    dispatcher.unregister_object(ids[0])
    new_id = dispatcher.register_object(objects[4])
    assert new_id != ids[0]
    assert new_id > ids[-1]


def test_dead_object_is_not_found():
    dispatcher = Dispatcher()
    obj = Dummy()
    object_id = dispatcher.register_object(obj)
    del obj
    gc.collect()
    assert dispatcher.find_object(object_id) is None


def test_small_hint_is_rejected():
    with pytest.raises(ValueError):
        Dispatcher(hint_maximum_id=1)