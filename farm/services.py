import logging

from guide.state import SENSORS_PATH, SensorSnapshot

logger = logging.getLogger(__name__)

CONTROLS_PATH = 'SMART_FARM/controls'

DEFAULT_CONTROLS = {
    'autoMode': True,
    'laserSystem': False,
    'pump': False,
    'startTime': '20:17',
    'stopDuration': '00:01',
    'solarTracker': False,
    'soilLimit': 45,
}


def read_sensors(store) -> SensorSnapshot:
    return SensorSnapshot.from_dict(store.get(SENSORS_PATH))


def write_sensors(store, snapshot: SensorSnapshot) -> SensorSnapshot:
    data = {k: v for k, v in snapshot.to_dict().items() if v is not None}
    store.set(SENSORS_PATH, data)
    return snapshot


def read_controls(store) -> dict:
    controls = dict(DEFAULT_CONTROLS)
    stored = store.get(CONTROLS_PATH)
    if isinstance(stored, dict):
        controls.update({k: v for k, v in stored.items() if k in DEFAULT_CONTROLS})
    return controls


def update_controls(store, changes: dict) -> dict:
    """
    Aplica los cambios y escribe el objeto de controles completo.
    Modo automático y bomba manual son excluyentes: activar uno apaga el otro.
    """
    controls = read_controls(store)
    controls.update(changes)
    if changes.get('autoMode') is True:
        controls['pump'] = False
    elif changes.get('pump') is True:
        controls['autoMode'] = False
    store.set(CONTROLS_PATH, controls)
    logger.info("Controles actualizados: %s", ", ".join(sorted(changes)))
    return controls
