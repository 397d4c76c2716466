"""
Árbol compartido direccionado por rutas ("guide", "guide/active",
"SMART_FARM/sensors", ...). Reemplaza a la base realtime del dashboard.

Contrato común de los backends:
- get(path): copia del valor en la ruta (None si no existe).
- set(path, value): sobrescribe el valor completo de la ruta; None la elimina.
- update(path, values): escribe solo los hijos indicados de la ruta (None elimina
  ese hijo); el resto de hijos no se toca.
- subscribe(path, callback): llama callback(valor) con el valor actual y luego
  en cada cambio que toque la ruta, un ancestro o un descendiente.
  Devuelve una función para cancelar la suscripción.
"""
import copy
import itertools
import logging
import threading
from functools import lru_cache
from typing import Any, Callable, Optional

import requests
from django.conf import settings
from django.core.exceptions import ImproperlyConfigured
from pymongo import MongoClient
from pymongo.errors import PyMongoError

from .exceptions import UpstreamError

logger = logging.getLogger(__name__)

Callback = Callable[[Any], None]


def split_path(path: str) -> list[str]:
    parts = [p for p in str(path).strip('/').split('/') if p]
    if not parts:
        raise ValueError("La ruta no puede estar vacía")
    return parts


def _related(a: list[str], b: list[str]) -> bool:
    n = min(len(a), len(b))
    return a[:n] == b[:n]


class TreeStore:
    def get(self, path: str) -> Any:
        raise NotImplementedError

    def set(self, path: str, value: Any) -> None:
        raise NotImplementedError

    def update(self, path: str, values: dict) -> None:
        raise NotImplementedError

    def subscribe(self, path: str, callback: Callback) -> Callable[[], None]:
        raise NotImplementedError


class MemoryTreeStore(TreeStore):
    """Árbol en memoria del proceso. Backend por defecto en desarrollo y tests."""

    def __init__(self, initial: Optional[dict] = None):
        self._root = copy.deepcopy(initial) if initial else {}
        self._lock = threading.Lock()
        self._subscribers: dict[int, tuple[list[str], Callback]] = {}
        self._ids = itertools.count()

    def _walk(self, parts):
        node = self._root
        for p in parts:
            if not isinstance(node, dict) or p not in node:
                return None
            node = node[p]
        return node

    def get(self, path):
        parts = split_path(path)
        with self._lock:
            return copy.deepcopy(self._walk(parts))

    def set(self, path, value):
        parts = split_path(path)
        with self._lock:
            node = self._root
            for p in parts[:-1]:
                child = node.get(p)
                if not isinstance(child, dict):
                    child = {}
                    node[p] = child
                node = child
            if value is None:
                node.pop(parts[-1], None)
            else:
                node[parts[-1]] = copy.deepcopy(value)
            listeners = [(sub, cb) for sub, cb in self._subscribers.values() if _related(sub, parts)]
        # fuera del lock: los callbacks pueden volver a escribir en el árbol
        for sub, cb in listeners:
            cb(self.get('/'.join(sub)))

    def update(self, path, values):
        parts = split_path(path)
        touched = [parts + [k] for k in values]
        with self._lock:
            node = self._root
            for p in parts:
                child = node.get(p)
                if not isinstance(child, dict):
                    child = {}
                    node[p] = child
                node = child
            for key, value in values.items():
                if value is None:
                    node.pop(key, None)
                else:
                    node[key] = copy.deepcopy(value)
            listeners = [
                (sub, cb) for sub, cb in self._subscribers.values()
                if any(_related(sub, t) for t in touched)
            ]
        for sub, cb in listeners:
            cb(self.get('/'.join(sub)))

    def subscribe(self, path, callback):
        parts = split_path(path)
        sid = next(self._ids)
        with self._lock:
            self._subscribers[sid] = (parts, callback)
        callback(self.get(path))

        def unsubscribe():
            with self._lock:
                self._subscribers.pop(sid, None)
        return unsubscribe


class MongoTreeStore(TreeStore):
    """
    Cada segmento de primer nivel es un documento (_id = segmento); las rutas
    anidadas se traducen a campos con puntos ($set / $unset).
    La suscripción usa change streams (requiere replica set).
    """
    SCALAR_FIELD = '__value__'

    def __init__(self, collection, poll_seconds: float = 1.0):
        self._collection = collection
        self._poll_seconds = poll_seconds

    def get(self, path):
        parts = split_path(path)
        try:
            doc = self._collection.find_one({'_id': parts[0]})
        except PyMongoError as exc:
            raise UpstreamError(f"Error leyendo '{path}' en Mongo: {exc}") from exc
        if doc is None:
            return None
        doc.pop('_id', None)
        node = doc.get(self.SCALAR_FIELD) if self.SCALAR_FIELD in doc else doc
        for p in parts[1:]:
            if not isinstance(node, dict) or p not in node:
                return None
            node = node[p]
        return node

    def set(self, path, value):
        parts = split_path(path)
        top = parts[0]
        try:
            if len(parts) == 1:
                if value is None:
                    self._collection.delete_one({'_id': top})
                elif isinstance(value, dict):
                    self._collection.replace_one({'_id': top}, dict(value), upsert=True)
                else:
                    self._collection.replace_one({'_id': top}, {self.SCALAR_FIELD: value}, upsert=True)
                return
            field = '.'.join(parts[1:])
            if value is None:
                self._collection.update_one({'_id': top}, {'$unset': {field: ''}})
            else:
                self._collection.update_one({'_id': top}, {'$set': {field: value}}, upsert=True)
        except PyMongoError as exc:
            raise UpstreamError(f"Error escribiendo '{path}' en Mongo: {exc}") from exc

    def update(self, path, values):
        parts = split_path(path)
        prefix = ''.join(f"{p}." for p in parts[1:])
        to_set = {prefix + k: v for k, v in values.items() if v is not None}
        to_unset = {prefix + k: '' for k, v in values.items() if v is None}
        changes = {}
        if to_set:
            changes['$set'] = to_set
        if to_unset:
            changes['$unset'] = to_unset
        if not changes:
            return
        try:
            self._collection.update_one({'_id': parts[0]}, changes, upsert=True)
        except PyMongoError as exc:
            raise UpstreamError(f"Error escribiendo '{path}' en Mongo: {exc}") from exc

    def _touches(self, change, rest):
        if change.get('operationType') != 'update' or not rest:
            return True
        desc = change.get('updateDescription') or {}
        fields = list((desc.get('updatedFields') or {}).keys()) + list(desc.get('removedFields') or [])
        return any(_related(f.split('.'), rest) for f in fields)

    def subscribe(self, path, callback):
        parts = split_path(path)
        stop = threading.Event()
        pipeline = [{'$match': {'documentKey._id': parts[0]}}]

        def watch():
            try:
                with self._collection.watch(pipeline, max_await_time_ms=int(self._poll_seconds * 1000)) as stream:
                    while not stop.is_set():
                        change = stream.try_next()
                        if change is None:
                            continue
                        if self._touches(change, parts[1:]):
                            callback(self.get(path))
            except PyMongoError:
                logger.exception("Change stream de '%s' interrumpido", path)

        callback(self.get(path))
        threading.Thread(target=watch, name=f"watch:{path}", daemon=True).start()
        return stop.set


class FirebaseTreeStore(TreeStore):
    """Firebase Realtime Database vía API REST (GET/PUT/DELETE {url}/{ruta}.json)."""

    def __init__(self, base_url: str, auth_token: Optional[str] = None, timeout: int = 10, session=None):
        self.base_url = base_url.rstrip('/')
        self.auth_token = auth_token
        self.timeout = timeout
        self.session = session or requests.Session()

    def _url(self, path):
        return f"{self.base_url}/{'/'.join(split_path(path))}.json"

    def _params(self):
        return {'auth': self.auth_token} if self.auth_token else None

    def get(self, path):
        try:
            resp = self.session.get(self._url(path), params=self._params(), timeout=self.timeout)
            resp.raise_for_status()
            return resp.json()
        except requests.RequestException as exc:
            raise UpstreamError(f"Error leyendo '{path}' en Firebase: {exc}") from exc

    def set(self, path, value):
        try:
            if value is None:
                resp = self.session.delete(self._url(path), params=self._params(), timeout=self.timeout)
            else:
                resp = self.session.put(self._url(path), json=value, params=self._params(), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise UpstreamError(f"Error escribiendo '{path}' en Firebase: {exc}") from exc

    def update(self, path, values):
        # PATCH: Firebase escribe solo los hijos enviados; null los elimina
        try:
            resp = self.session.patch(self._url(path), json=values, params=self._params(), timeout=self.timeout)
            resp.raise_for_status()
        except requests.RequestException as exc:
            raise UpstreamError(f"Error escribiendo '{path}' en Firebase: {exc}") from exc

    def subscribe(self, path, callback):
        stop = threading.Event()
        holder = {}

        def stream():
            try:
                resp = self.session.get(
                    self._url(path),
                    params=self._params(),
                    headers={'Accept': 'text/event-stream'},
                    stream=True,
                    timeout=(self.timeout, 90),  # Firebase manda keep-alive cada ~30s
                )
                resp.raise_for_status()
                holder['resp'] = resp
                event = None
                for line in resp.iter_lines(decode_unicode=True):
                    if stop.is_set():
                        break
                    if not line:
                        continue
                    if line.startswith('event:'):
                        event = line.split(':', 1)[1].strip()
                    elif line.startswith('data:'):
                        if event in ('put', 'patch'):
                            callback(self.get(path))
                        elif event in ('cancel', 'auth_revoked'):
                            logger.warning("Stream de '%s' cerrado por Firebase (%s)", path, event)
                            break
            except (requests.RequestException, UpstreamError):
                if not stop.is_set():
                    logger.exception("Stream de '%s' interrumpido", path)

        def unsubscribe():
            stop.set()
            resp = holder.get('resp')
            if resp is not None:
                resp.close()

        # el primer evento 'put' del stream trae el valor actual
        threading.Thread(target=stream, name=f"stream:{path}", daemon=True).start()
        return unsubscribe


@lru_cache(maxsize=1)
def get_mongo_client() -> MongoClient:
    if not settings.MONGO_URL:
        raise ImproperlyConfigured("MONGO_URL no configurado")
    return MongoClient(settings.MONGO_URL, tz_aware=True, serverSelectionTimeoutMS=5000)


@lru_cache(maxsize=1)
def get_store() -> TreeStore:
    backend = (settings.TREE_STORE_BACKEND or 'memory').lower()
    if backend == 'memory':
        if not settings.DEBUG:
            # cada proceso (web, worker de Celery, watch_guide) tendría su propio árbol vacío
            logger.warning("TREE_STORE_BACKEND=memory fuera de DEBUG: el árbol no se comparte entre procesos; "
                           "el disparador programado y watch_guide necesitan mongo o firebase")
        return MemoryTreeStore()
    if backend == 'mongo':
        collection = get_mongo_client()[settings.MONGO_DB][settings.MONGO_TREE_COLLECTION]
        return MongoTreeStore(collection)
    if backend == 'firebase':
        if not settings.FIREBASE_DATABASE_URL:
            raise ImproperlyConfigured("FIREBASE_DATABASE_URL no configurado")
        return FirebaseTreeStore(
            settings.FIREBASE_DATABASE_URL,
            auth_token=settings.FIREBASE_AUTH_TOKEN,
            timeout=settings.STORE_TIMEOUT,
        )
    raise ImproperlyConfigured(f"TREE_STORE_BACKEND no soportado: {backend}")
