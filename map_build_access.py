# map_build_access.py
# Exports the moped-legal road network of an OSM extract, per vehicle class.
# Needs: pip install -e .   (osmnx, pandas)
#
# Usage:
#   python map_build_access.py gent.osm --out access_layers

import argparse
import logging

from bromnav.road_segments import export_access_layers


def main() -> None:
    logging.basicConfig(level=logging.INFO, format="%(levelname)s %(name)s: %(message)s")

    parser = argparse.ArgumentParser(description="Export moped-accessible edges of an OSM file")
    parser.add_argument("osm_path", help="OSM XML extract (.osm)")
    parser.add_argument("--out", default="access_layers", help="Output directory")
    args = parser.parse_args()

    counts = export_access_layers(args.osm_path, args.out)
    for vehicle_class, count in counts.items():
        print(f"Class {vehicle_class.value}: {count} usable edges → {args.out}/")


if __name__ == "__main__":
    main()
