"""
Shared fixtures: a recording drawing surface, sample activity files and stat values
"""

import pytest

from velociview.lib.stats import RoutePoint, StatValues

CHAR_WIDTH = 0.5


class RecordingSurface:
    """Drawing surface double that records every call instead of painting"""

    def __init__(self, width=1000, height=800, luminance=0.2):
        self.width = width
        self.height = height
        self.luminance = luminance
        self.calls = []

    def measure_text(self, text, font):
        return len(text) * font.size * CHAR_WIDTH

    def fill_text(self, text, x, y, font, color, align="left", opacity=1.0, shadow=None):
        self.calls.append(("text", text, x, y, font, color, align, opacity, shadow))

    def fill_rounded_rect(self, x, y, width, height, radius, color, opacity=1.0):
        self.calls.append(("rect", x, y, width, height, radius, color, opacity))

    def stroke_polyline(self, points, color, width, shadow=None):
        self.calls.append(("polyline", list(points), color, width, shadow))

    def fill_circle(self, cx, cy, radius, color, outline=None, outline_width=0, shadow=None):
        self.calls.append(("circle", cx, cy, radius, color, outline, outline_width, shadow))

    def draw_image(self, image, x, y, width, height, shadow=None):
        self.calls.append(("image", image, x, y, width, height, shadow))

    def average_luminance(self, x, y, width, height):
        return self.luminance

    def of_kind(self, kind):
        return [c for c in self.calls if c[0] == kind]

    def texts(self):
        return [c[1] for c in self.of_kind("text")]


@pytest.fixture
def surface():
    return RecordingSurface()


@pytest.fixture
def route_points():
    return tuple(RoutePoint(46.0 + i * 0.001, 7.0 + i * 0.0015) for i in range(20))


@pytest.fixture
def scenario_values():
    return StatValues(
        distance="10.00 km",
        moving_time="45:00",
        avg_speed="13.3 km/h",
        max_speed="20.0 km/h",
        ascent="120 m",
        descent="80 m",
    )


@pytest.fixture
def full_values(route_points):
    return StatValues(
        distance="42.15 km",
        moving_time="1:32:05",
        avg_speed="27.5 km/h",
        max_speed="54.2 km/h",
        ascent="820 m",
        descent="815 m",
        avg_pace="2:11 /km",
        max_pace="1:06 /km",
        max_elevation="1450 m",
        min_elevation="630 m",
        avg_elevation="912 m",
        route_points=route_points,
        track_name="Morning Ride",
    )


GPX_SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk>
    <name>Lunch Run</name>
    <desc>Around the lake</desc>
    <trkseg>
      <trkpt lat="46.0000" lon="7.0000"><ele>500</ele><time>2024-05-01T12:00:00Z</time></trkpt>
      <trkpt lat="46.0001" lon="7.0000"><ele>502</ele><time>2024-05-01T12:00:03Z</time></trkpt>
      <trkpt lat="46.0002" lon="7.0000"><ele>505</ele><time>2024-05-01T12:00:06Z</time></trkpt>
      <trkpt lat="46.0003" lon="7.0000"><ele>503</ele><time>2024-05-01T12:00:09Z</time></trkpt>
      <trkpt lat="46.0004" lon="7.0000"><ele>501</ele><time>2024-05-01T12:00:12Z</time></trkpt>
      <trkpt lat="46.0005" lon="7.0000"><ele>504</ele><time>2024-05-01T12:00:15Z</time></trkpt>
    </trkseg>
  </trk>
</gpx>
"""

GPX_NO_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <wpt lat="46.0" lon="7.0"><name>Summit</name></wpt>
</gpx>
"""

GPX_EMPTY_TRACK = """<?xml version="1.0" encoding="UTF-8"?>
<gpx version="1.1" creator="test" xmlns="http://www.topografix.com/GPX/1/1">
  <trk><name>Empty</name><trkseg></trkseg></trk>
</gpx>
"""

TCX_SAMPLE = """<?xml version="1.0" encoding="UTF-8"?>
<TrainingCenterDatabase xmlns="http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2">
  <Activities>
    <Activity Sport="Biking">
      <Id>2024-05-01T08:00:00Z</Id>
      <Lap StartTime="2024-05-01T08:00:00Z">
        <TotalTimeSeconds>600</TotalTimeSeconds>
        <DistanceMeters>4000</DistanceMeters>
        <MaximumSpeed>11.5</MaximumSpeed>
        <Track>
          <Trackpoint>
            <Time>2024-05-01T08:00:00Z</Time>
            <Position><LatitudeDegrees>46.0</LatitudeDegrees><LongitudeDegrees>7.0</LongitudeDegrees></Position>
            <AltitudeMeters>400</AltitudeMeters>
            <DistanceMeters>0</DistanceMeters>
          </Trackpoint>
          <Trackpoint>
            <Time>2024-05-01T08:05:00Z</Time>
            <Position><LatitudeDegrees>46.01</LatitudeDegrees><LongitudeDegrees>7.01</LongitudeDegrees></Position>
            <AltitudeMeters>430</AltitudeMeters>
            <DistanceMeters>2000</DistanceMeters>
          </Trackpoint>
        </Track>
      </Lap>
      <Lap StartTime="2024-05-01T08:10:00Z">
        <TotalTimeSeconds>400</TotalTimeSeconds>
        <DistanceMeters>2000</DistanceMeters>
        <MaximumSpeed>12.5</MaximumSpeed>
        <Track>
          <Trackpoint>
            <Time>2024-05-01T08:10:00Z</Time>
            <Position><LatitudeDegrees>46.02</LatitudeDegrees><LongitudeDegrees>7.02</LongitudeDegrees></Position>
            <AltitudeMeters>410</AltitudeMeters>
            <DistanceMeters>4000</DistanceMeters>
          </Trackpoint>
        </Track>
      </Lap>
      <Notes>Evening Spin</Notes>
    </Activity>
  </Activities>
</TrainingCenterDatabase>
"""

TCX_NO_LAPS = """<?xml version="1.0" encoding="UTF-8"?>
<TrainingCenterDatabase xmlns="http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2">
  <Activities><Activity Sport="Running"><Id>2024-05-01T08:00:00Z</Id></Activity></Activities>
</TrainingCenterDatabase>
"""

TCX_NO_POSITION = """<?xml version="1.0" encoding="UTF-8"?>
<TrainingCenterDatabase xmlns="http://www.garmin.com/xmlschemas/TrainingCenterDatabase/v2">
  <Activities>
    <Activity Sport="Running">
      <Id>2024-05-01T08:00:00Z</Id>
      <Lap StartTime="2024-05-01T08:00:00Z">
        <TotalTimeSeconds>60</TotalTimeSeconds>
        <Track><Trackpoint><Time>2024-05-01T08:00:00Z</Time></Trackpoint></Track>
      </Lap>
    </Activity>
  </Activities>
</TrainingCenterDatabase>
"""


@pytest.fixture
def gpx_bytes():
    return GPX_SAMPLE.encode("utf-8")


@pytest.fixture
def tcx_bytes():
    return TCX_SAMPLE.encode("utf-8")
