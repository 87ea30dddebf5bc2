"""GeoJSON geometry for workout routes"""

import logging

from lxml import etree

from healthkit_sqlite.utils.database_helpers import finite_float

logger = logging.getLogger(__name__)


def build_line_string(points):
    """Fold an ordered point sequence into a GeoJSON LineString

    Coordinates keep the input order exactly. Elevation, when present,
    is dropped: the LineString is two-dimensional.

    Args:
        points: Sequence of (lon, lat) or (lon, lat, elevation) tuples

    Returns:
        GeoJSON dictionary, or None when there are no points
    """
    if not points:
        return None

    return {
        'type': 'LineString',
        'coordinates': [[point[0], point[1]] for point in points],
    }


def read_gpx_points(source):
    """Stream track points out of a GPX document

    Works with GPX 1.0, 1.1 and un-namespaced files.

    Args:
        source: File path or binary file-like object

    Returns:
        List of (lon, lat, elevation) tuples, elevation None when absent

    Raises:
        ValueError: If a track point has a missing, non-numeric or non-finite
            coordinate
        lxml.etree.XMLSyntaxError: If the document is not well-formed
    """
    points = []
    context = etree.iterparse(source, events=('end',), tag='{*}trkpt',
                              resolve_entities=False)

    for _, elem in context:
        lat = elem.get('lat')
        lon = elem.get('lon')
        if lat is None or lon is None:
            raise ValueError(f"trkpt at line {elem.sourceline} has no lat/lon")

        elevation = None
        for child in elem:
            if isinstance(child.tag, str) and etree.QName(child).localname == 'ele':
                try:
                    elevation = finite_float(child.text) if child.text else None
                except ValueError:
                    elevation = None
                break

        points.append((finite_float(lon), finite_float(lat), elevation))

        elem.clear()
        while elem.getprevious() is not None:
            del elem.getparent()[0]

    logger.debug("Read %d route points", len(points))
    return points
