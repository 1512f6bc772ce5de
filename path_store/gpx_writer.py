"""
GPX 1.1 writer for recorded paths.

Exports stored paths to GPX with:
- One <trk> per recorded path, one segment of trackpoints (lat, lon)
- A custom extension per track carrying distance, duration, and color
"""

import xml.etree.ElementTree as ET
from datetime import datetime, timezone
from typing import Iterable, TextIO

from path_store.data_models import PersistedPath


# XML namespaces
NS_GPX = "http://www.topografix.com/GPX/1/1"
NS_TRACKER = "http://vehicle-tracker.local/gpx/path/v1"
NS_XSI = "http://www.w3.org/2001/XMLSchema-instance"


def write_gpx(paths: Iterable[PersistedPath], output: TextIO, name: str = "Recorded Paths") -> None:
    """
    Write recorded paths to GPX 1.1.

    Args:
        paths: Paths to export, in the order they should appear
        output: File-like object to write to
        name: Document name for the metadata block
    """
    paths = list(paths)

    ET.register_namespace("", NS_GPX)
    ET.register_namespace("tracker", NS_TRACKER)
    ET.register_namespace("xsi", NS_XSI)

    gpx = ET.Element(
        "{%s}gpx" % NS_GPX,
        attrib={
            "version": "1.1",
            "creator": "Vehicle Tracker Path Exporter",
            "{%s}schemaLocation" % NS_XSI: f"{NS_GPX} http://www.topografix.com/GPX/1/1/gpx.xsd",
        }
    )

    metadata = ET.SubElement(gpx, "{%s}metadata" % NS_GPX)
    ET.SubElement(metadata, "{%s}name" % NS_GPX).text = name
    if paths:
        ET.SubElement(metadata, "{%s}time" % NS_GPX).text = _format_time(paths[0].date)

    for path in paths:
        trk = ET.SubElement(gpx, "{%s}trk" % NS_GPX)
        ET.SubElement(trk, "{%s}name" % NS_GPX).text = path.name

        extensions = ET.SubElement(trk, "{%s}extensions" % NS_GPX)
        path_ext = ET.SubElement(extensions, f"{{{NS_TRACKER}}}PathExtension")
        _add_tracker_elem(path_ext, "id", path.id)
        _add_tracker_elem(path_ext, "date", _format_time(path.date))
        _add_tracker_elem(path_ext, "distance_km", f"{path.distance_km:.3f}")
        _add_tracker_elem(path_ext, "duration_min", f"{path.duration_min:.2f}")
        _add_tracker_elem(path_ext, "color", path.color)

        trkseg = ET.SubElement(trk, "{%s}trkseg" % NS_GPX)
        for point in path.coordinates:
            trkpt = ET.SubElement(trkseg, "{%s}trkpt" % NS_GPX)
            trkpt.set("lat", f"{point.lat:.7f}")
            trkpt.set("lon", f"{point.lng:.7f}")

    tree = ET.ElementTree(gpx)
    output.write('<?xml version="1.0" encoding="UTF-8"?>\n')
    tree.write(output, encoding="unicode", xml_declaration=False)


def _add_tracker_elem(parent: ET.Element, name: str, value: str) -> None:
    """Add a tracker namespace element to the parent."""
    elem = ET.SubElement(parent, f"{{{NS_TRACKER}}}{name}")
    elem.text = value


def _format_time(dt: datetime) -> str:
    """Format datetime as ISO 8601 UTC string for GPX."""
    if dt.tzinfo is None:
        dt = dt.replace(tzinfo=timezone.utc)
    dt = dt.astimezone(timezone.utc)
    return dt.strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z"
