"""Keep only point features from a parsed collection.

INPE's fire-front feeds mix hotspot points with front polygons and
lines; only the points are hotspots.
"""

from __future__ import annotations

from firemap.layers.layer import FeatureCollection


def filter_points(collection: FeatureCollection) -> FeatureCollection:
    """Return a new collection holding only the Point features.

    An input with no points yields a valid, empty collection.
    """
    return FeatureCollection(
        name=collection.name,
        features=[f for f in collection.features if f.geometry_type == "Point"],
        source_id=collection.source_id,
    )
