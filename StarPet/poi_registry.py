import logging

from models import Activity, Position

log = logging.getLogger(__name__)


class PoiRegistry:
    """Activity -> map position, built once from the map's POI list.

    A missing entry is normal: the pet wanders instead.
    """

    def __init__(self, pois=()):
        self._by_activity = {}
        self._names = []
        for poi in pois:
            self._names.append(poi.name)
            if poi.activity is None:
                continue
            if poi.activity == Activity.IDLE:
                log.warning("POI '%s' is tagged idle; idle always wanders, ignoring tag", poi.name)
                continue
            if poi.activity in self._by_activity:
                log.warning("Activity '%s' already has a POI, ignoring '%s'", poi.activity.value, poi.name)
                continue
            self._by_activity[poi.activity] = Position(poi.x, poi.y)

    def lookup(self, activity):
        return self._by_activity.get(activity)

    def names(self):
        return list(self._names)

    def __len__(self):
        return len(self._by_activity)
