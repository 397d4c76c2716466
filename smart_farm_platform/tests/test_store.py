from unittest.mock import MagicMock

import pytest
import requests

from smart_farm_platform.exceptions import UpstreamError
from smart_farm_platform.store import (
    FirebaseTreeStore,
    MemoryTreeStore,
    MongoTreeStore,
    split_path,
)


def test_split_path():
    assert split_path('/guide/dailyInstructions/') == ['guide', 'dailyInstructions']
    with pytest.raises(ValueError):
        split_path('/')


def test_memory_get_returns_copy():
    store = MemoryTreeStore({'guide': {'active': True}})

    value = store.get('guide')
    value['active'] = False

    assert store.get('guide/active') is True
    assert store.get('guide/missing') is None


def test_memory_set_none_deletes():
    store = MemoryTreeStore()
    store.set('guide/dailyInstructions/2025-06-01', {'instructions': 'x'})

    store.set('guide/dailyInstructions/2025-06-01', None)

    assert store.get('guide/dailyInstructions') == {}


def test_memory_notifies_related_paths_only():
    store = MemoryTreeStore()
    seen = {'guide': [], 'active': [], 'sensors': []}
    store.subscribe('guide', seen['guide'].append)
    store.subscribe('guide/active', seen['active'].append)
    store.subscribe('SMART_FARM/sensors', seen['sensors'].append)

    store.set('guide', {'active': True, 'farmerCrop': 'rice'})
    store.set('guide/dailyInstructions/2025-06-01', {'instructions': 'x'})

    # primer valor = lectura inicial al suscribirse
    assert seen['guide'][0] is None
    assert seen['guide'][-1]['dailyInstructions'] == {'2025-06-01': {'instructions': 'x'}}
    assert seen['active'] == [None, True]
    assert seen['sensors'] == [None]


def test_memory_unsubscribe():
    store = MemoryTreeStore()
    seen = []
    unsubscribe = store.subscribe('guide', seen.append)

    unsubscribe()
    store.set('guide/active', True)

    assert seen == [None]


def test_memory_callback_may_write():
    store = MemoryTreeStore()

    def on_sensors(value):
        if value:
            store.set('guide/lastSeen', value['temperature'])

    store.subscribe('SMART_FARM/sensors', on_sensors)
    store.set('SMART_FARM/sensors', {'temperature': 29})

    assert store.get('guide/lastSeen') == 29


def _response(json_data=None, status_code=200):
    resp = MagicMock()
    resp.json.return_value = json_data
    resp.status_code = status_code
    if status_code >= 400:
        resp.raise_for_status.side_effect = requests.HTTPError(f"{status_code}")
    return resp


def test_firebase_get_and_set_use_rest_paths():
    session = MagicMock()
    session.get.return_value = _response({'active': True})
    session.put.return_value = _response()
    store = FirebaseTreeStore('https://farm.firebaseio.com/', auth_token='tok', session=session)

    assert store.get('guide') == {'active': True}
    store.set('guide/active', False)

    session.get.assert_called_once_with('https://farm.firebaseio.com/guide.json', params={'auth': 'tok'}, timeout=10)
    _, kwargs = session.put.call_args
    assert session.put.call_args[0][0] == 'https://farm.firebaseio.com/guide/active.json'
    assert kwargs['json'] is False


def test_firebase_delete_on_none():
    session = MagicMock()
    session.delete.return_value = _response()
    store = FirebaseTreeStore('https://farm.firebaseio.com', session=session)

    store.set('guide/dailyInstructions/2025-06-01', None)

    session.delete.assert_called_once()
    assert session.delete.call_args[1]['params'] is None


@pytest.mark.parametrize("failure", [
    requests.ConnectionError("sin red"),
    None,
])
def test_firebase_errors_are_upstream(failure):
    session = MagicMock()
    if failure:
        session.get.side_effect = failure
    else:
        session.get.return_value = _response(status_code=401)
    store = FirebaseTreeStore('https://farm.firebaseio.com', session=session)

    with pytest.raises(UpstreamError):
        store.get('guide')


def test_mongo_nested_set_uses_dotted_field():
    collection = MagicMock()
    store = MongoTreeStore(collection)

    store.set('guide/dailyInstructions/2025-06-01', {'instructions': 'x'})
    store.set('guide/active', None)

    collection.update_one.assert_any_call(
        {'_id': 'guide'},
        {'$set': {'dailyInstructions.2025-06-01': {'instructions': 'x'}}},
        upsert=True,
    )
    collection.update_one.assert_any_call({'_id': 'guide'}, {'$unset': {'active': ''}})


def test_mongo_top_level_set():
    collection = MagicMock()
    store = MongoTreeStore(collection)

    store.set('guide', {'active': True})
    store.set('flag', 3)

    collection.replace_one.assert_any_call({'_id': 'guide'}, {'active': True}, upsert=True)
    collection.replace_one.assert_any_call({'_id': 'flag'}, {'__value__': 3}, upsert=True)


def test_mongo_get_walks_document():
    collection = MagicMock()
    collection.find_one.return_value = {'_id': 'guide', 'active': True, 'dailyInstructions': {'2025-06-01': {'instructions': 'x'}}}
    store = MongoTreeStore(collection)

    assert store.get('guide/dailyInstructions/2025-06-01') == {'instructions': 'x'}
    assert store.get('guide/farmerCrop') is None
    assert store.get('guide') == {'active': True, 'dailyInstructions': {'2025-06-01': {'instructions': 'x'}}}


def test_mongo_change_filter():
    store = MongoTreeStore(MagicMock())
    change = {
        'operationType': 'update',
        'updateDescription': {'updatedFields': {'dailyInstructions.2025-06-01': {}}, 'removedFields': []},
    }

    assert store._touches(change, ['dailyInstructions'])
    assert not store._touches(change, ['active'])
    assert store._touches({'operationType': 'replace'}, ['active'])


def test_memory_update_leaves_other_children():
    store = MemoryTreeStore({'guide': {'active': False, 'dailyInstructions': {'2025-05-01': 'texto'}}})
    seen = {'history': [], 'crop': []}
    store.subscribe('guide/dailyInstructions', seen['history'].append)
    store.subscribe('guide/farmerCrop', seen['crop'].append)

    store.update('guide', {'active': True, 'farmerCrop': 'corn', 'startDate': None})

    assert store.get('guide') == {'active': True, 'farmerCrop': 'corn', 'dailyInstructions': {'2025-05-01': 'texto'}}
    assert seen['crop'] == [None, 'corn']
    assert len(seen['history']) == 1


def test_mongo_update_sets_only_given_fields():
    collection = MagicMock()
    store = MongoTreeStore(collection)

    store.update('guide', {'active': True, 'farmerCrop': 'corn', 'startDate': None})

    collection.update_one.assert_called_once_with(
        {'_id': 'guide'},
        {'$set': {'active': True, 'farmerCrop': 'corn'}, '$unset': {'startDate': ''}},
        upsert=True,
    )


def test_firebase_update_uses_patch():
    session = MagicMock()
    session.patch.return_value = _response()
    store = FirebaseTreeStore('https://farm.firebaseio.com', session=session)

    store.update('guide', {'active': True})

    session.patch.assert_called_once_with(
        'https://farm.firebaseio.com/guide.json', json={'active': True}, params=None, timeout=10)


def test_memory_backend_warns_outside_debug(settings, caplog):
    from smart_farm_platform.store import get_store

    settings.DEBUG = False
    settings.TREE_STORE_BACKEND = 'memory'
    get_store.cache_clear()
    try:
        with caplog.at_level('WARNING', logger='smart_farm_platform.store'):
            assert isinstance(get_store(), MemoryTreeStore)
    finally:
        get_store.cache_clear()

    assert 'TREE_STORE_BACKEND=memory' in caplog.text
