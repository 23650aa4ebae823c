# road_segments.py
# Turns raw OSM way tags into RoadSegment objects and audits a map extract
# against the moped access rules.
# Depends only on models and legality from this project.

import logging
import math
import os
import re
from typing import Any, Dict, Mapping, Optional

import osmnx as ox
import pandas as pd

from .legality import is_segment_accessible, surface_penalty
from .models import RoadSegment, RoadType, Surface, VehicleClass

logger = logging.getLogger(__name__)


# ---------------------------------------------------------------------------
# Tag vocabularies
# ---------------------------------------------------------------------------

HIGHWAY_TO_ROAD_TYPE: Dict[str, RoadType] = {
    "motorway":      RoadType.MOTORWAY,
    "trunk":         RoadType.TRUNK,
    "primary":       RoadType.PRIMARY,
    "secondary":     RoadType.SECONDARY,
    "tertiary":      RoadType.SECONDARY,
    "residential":   RoadType.RESIDENTIAL,
    "unclassified":  RoadType.RESIDENTIAL,
    "living_street": RoadType.RESIDENTIAL,
    "service":       RoadType.RESIDENTIAL,
    "road":          RoadType.RESIDENTIAL,
    "cycleway":      RoadType.CYCLEWAY,
    "path":          RoadType.PATH,
    "track":         RoadType.PATH,
}

# Speed assumed when a way carries no usable maxspeed tag.
DEFAULT_MAX_SPEED_KPH: Dict[RoadType, int] = {
    RoadType.MOTORWAY:    120,
    RoadType.TRUNK:       90,
    RoadType.PRIMARY:     70,
    RoadType.SECONDARY:   50,
    RoadType.RESIDENTIAL: 50,
    RoadType.CYCLEWAY:    30,
    RoadType.PATH:        30,
}

ZONE_SPEEDS_KPH: Dict[str, int] = {
    "be:urban":  50,
    "be:rural":  70,
    "be:zone30": 30,
    "be-vlg:rural": 70,
    "be-wal:rural": 90,
    "be-bru:rural": 70,
}

COBBLE_SURFACES: frozenset = frozenset({
    "sett", "cobblestone", "unhewn_cobblestone", "paving_stones",
})
LOOSE_SURFACES: frozenset = frozenset({
    "gravel", "fine_gravel", "unpaved", "compacted", "dirt", "ground", "pebblestone",
})

CYCLE_PATH_VALUES: frozenset = frozenset({
    "track", "lane", "separate", "opposite_track", "opposite_lane",
})
CYCLEWAY_KEYS = ("cycleway", "cycleway:both", "cycleway:right", "cycleway:left")

YES_VALUES: frozenset = frozenset({"yes", "designated", "permissive", "true", "1"})

# Way tags osmnx must keep on edges for segment_from_tags to work.
EXTRA_WAY_TAGS = (
    "surface", "maxspeed", "moped", "mofa", "traffic_sign", "bicycle",
    "oneway:moped", "oneway:bicycle", "motor_vehicle",
    *CYCLEWAY_KEYS,
    *(f"{key}:moped" for key in CYCLEWAY_KEYS),
)


# ---------------------------------------------------------------------------
# Internal helpers
# ---------------------------------------------------------------------------

def _scalar(value: Any, lower: bool = True) -> Optional[str]:
    """First non-empty value of a tag as a string, or None."""
    if isinstance(value, (list, tuple, set)):
        for item in value:
            found = _scalar(item, lower)
            if found is not None:
                return found
        return None
    if value is None:
        return None
    if isinstance(value, float) and math.isnan(value):
        return None
    if isinstance(value, bool):
        return "yes" if value else "no"
    text = str(value).strip()
    if lower:
        text = text.lower()
    return text or None


def _has_c6_sign(traffic_sign: Optional[str]) -> bool:
    if not traffic_sign:
        return False
    signs = re.split(r"[,;]", traffic_sign)
    return any(sign.strip().split(":")[-1] == "c6" for sign in signs)


def _flatten_lists(frame: pd.DataFrame) -> pd.DataFrame:
    """Join list-valued cells (left by graph simplification) for file export."""
    for column in frame.columns:
        if column == "geometry" or frame[column].dtype != object:
            continue
        frame[column] = frame[column].apply(
            lambda v: ",".join(str(x) for x in v) if isinstance(v, list) else v
        )
    return frame


def _parse_max_speed(raw: Optional[str], road_type: RoadType) -> int:
    if raw:
        if raw in ZONE_SPEEDS_KPH:
            return ZONE_SPEEDS_KPH[raw]
        digits = ""
        for ch in raw:
            if not ch.isdigit():
                break
            digits += ch
        if digits:
            speed = int(digits)
            return round(speed * 1.609) if "mph" in raw else speed
    return DEFAULT_MAX_SPEED_KPH[road_type]


def _parse_surface(raw: Optional[str]) -> Surface:
    if raw is None:
        return Surface.ASPHALT
    if raw in COBBLE_SURFACES or raw.startswith("paving_stones"):
        return Surface.COBBLESTONE
    if raw in LOOSE_SURFACES:
        return Surface.GRAVEL
    return Surface.ASPHALT


# ---------------------------------------------------------------------------
# Public API
# ---------------------------------------------------------------------------

def segment_from_tags(tags: Mapping[str, Any]) -> Optional[RoadSegment]:
    """
    Build a RoadSegment from the tags of one OSM way.

    Args:
        tags: Raw tag mapping (also accepts osmnx edge rows, whose values
              may be lists after graph simplification).

    Returns:
        RoadSegment, or None if the way is not a road mopeds could ever use
        (footways, steps, construction, non-highway ways).
    """
    highway = _scalar(tags.get("highway"))
    if highway is None:
        return None
    if highway.endswith("_link"):
        highway = highway[: -len("_link")]
    road_type = HIGHWAY_TO_ROAD_TYPE.get(highway)
    if road_type is None:
        return None

    cycleway_values = [_scalar(tags.get(key)) for key in CYCLEWAY_KEYS]
    has_cycle_path = any(v in CYCLE_PATH_VALUES for v in cycleway_values)

    # mofa (the slower class) stands in when the way has no moped tag
    moped_access = _scalar(tags.get("moped")) or _scalar(tags.get("mofa"))

    if road_type is RoadType.CYCLEWAY:
        mopeds_on_cycle_path = moped_access in YES_VALUES
    else:
        mopeds_on_cycle_path = any(
            _scalar(tags.get(f"{key}:moped")) in YES_VALUES for key in CYCLEWAY_KEYS
        )

    prohibited = (
        moped_access == "no"
        or _has_c6_sign(_scalar(tags.get("traffic_sign")))
    )

    oneway = _scalar(tags.get("oneway"))
    exempt = (
        _scalar(tags.get("oneway:moped")) == "no"
        or _scalar(tags.get("oneway:bicycle")) == "no"
    )
    access = _scalar(tags.get("access"))
    motor_vehicle = _scalar(tags.get("motor_vehicle"))

    return RoadSegment(
        road_type=road_type,
        max_speed_kph=_parse_max_speed(_scalar(tags.get("maxspeed")), road_type),
        surface=_parse_surface(_scalar(tags.get("surface"))),
        has_cycle_path=has_cycle_path,
        cycle_path_compulsory=_scalar(tags.get("bicycle")) == "use_sidepath",
        mopeds_allowed_on_cycle_path=mopeds_on_cycle_path,
        mopeds_prohibited_on_road=prohibited and road_type is not RoadType.CYCLEWAY,
        is_one_way_car=oneway in {"yes", "true", "1", "-1"},
        is_one_way_moped_exempt=exempt,
        is_destination_only="destination" in {access, motor_vehicle},
        segment_id=_scalar(tags.get("osmid")),
        name=_scalar(tags.get("name"), lower=False),
    )


def _segment_penalty(row: pd.Series) -> float:
    segment = segment_from_tags(row.to_dict())
    return surface_penalty(segment) if segment is not None else math.inf


def classify_edges(edges: pd.DataFrame, vehicle_class: VehicleClass) -> pd.Series:
    """
    Evaluate the access rules for every row of an edge table.

    Args:
        edges:         One row per edge, columns named after OSM tags.
        vehicle_class: Moped class to evaluate.

    Returns:
        Boolean Series aligned with edges.index.
    """
    if edges.empty:
        return pd.Series(dtype=bool, index=edges.index)

    def accessible(row: pd.Series) -> bool:
        segment = segment_from_tags(row.to_dict())
        return segment is not None and is_segment_accessible(segment, vehicle_class)

    return edges.apply(accessible, axis=1).astype(bool)


def load_edges(osm_path: str):
    """
    Parse an OSM XML extract with osmnx and return its edge GeoDataFrame.

    Raises:
        FileNotFoundError: If osm_path does not exist.
    """
    if not os.path.exists(osm_path):
        raise FileNotFoundError(osm_path)

    ox.settings.useful_tags_way = sorted(set(ox.settings.useful_tags_way) | set(EXTRA_WAY_TAGS))
    logger.info(f"Loading map: {osm_path}")
    graph = ox.graph_from_xml(osm_path, simplify=True, bidirectional=True)
    edges = ox.graph_to_gdfs(graph, nodes=False, edges=True)
    logger.info(f"Map ready, {len(edges)} edges.")
    return edges


def export_access_layers(osm_path: str, out_dir: str) -> Dict[VehicleClass, int]:
    """
    Write the legally usable network of each vehicle class to disk.

    Produces access_<class>.geojson and access_<class>.csv (geometry as WKT)
    in out_dir.

    Returns:
        Number of usable edges per vehicle class.
    """
    os.makedirs(out_dir, exist_ok=True)
    edges = load_edges(osm_path)
    penalties = edges.apply(_segment_penalty, axis=1)

    counts: Dict[VehicleClass, int] = {}
    for vehicle_class in VehicleClass:
        mask = classify_edges(edges, vehicle_class)
        usable = _flatten_lists(edges[mask].copy())
        usable["surface_penalty"] = penalties[mask]
        stem = os.path.join(out_dir, f"access_{vehicle_class.value.lower()}")

        usable.to_file(f"{stem}.geojson", driver="GeoJSON")
        table = usable.reset_index()
        keep = [c for c in (
            "u", "v", "key", "osmid", "name", "highway", "maxspeed", "surface",
            "oneway", "length", "surface_penalty", "geometry",
        ) if c in table.columns]
        table = table[keep]
        table["wkt"] = table["geometry"].apply(lambda g: g.wkt)
        table = table.drop(columns=["geometry"])
        table.to_csv(f"{stem}.csv", index=False)

        counts[vehicle_class] = len(usable)
        logger.info(f"Class {vehicle_class.value}: {len(usable)} of {len(edges)} edges usable.")
    return counts
