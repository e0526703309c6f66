"""Release names for the DataVersion stored in map files.

The built-in table lists releases only. ``update-versions`` downloads the
complete list (snapshots included) into the data directory and that file
takes precedence.
"""

UNKNOWN = "Unknown"

KNOWN_VERSIONS = {
    169: "1.9",
    175: "1.9.1",
    176: "1.9.2",
    184: "1.9.4",
    510: "1.10",
    512: "1.10.2",
    819: "1.11",
    922: "1.11.2",
    1139: "1.12",
    1241: "1.12.1",
    1343: "1.12.2",
    1519: "1.13",
    1628: "1.13.1",
    1631: "1.13.2",
    1952: "1.14",
    1957: "1.14.1",
    1963: "1.14.2",
    1968: "1.14.3",
    1976: "1.14.4",
    2225: "1.15",
    2227: "1.15.1",
    2230: "1.15.2",
    2566: "1.16",
    2567: "1.16.1",
    2578: "1.16.2",
    2580: "1.16.3",
    2584: "1.16.4",
    2586: "1.16.5",
    2699: "21w10a",
    2724: "1.17",
    2730: "1.17.1",
    2860: "1.18",
    2865: "1.18.1",
    2975: "1.18.2",
    3105: "1.19",
    3117: "1.19.1",
    3120: "1.19.2",
    3218: "1.19.3",
    3337: "1.19.4",
    3463: "1.20",
    3465: "1.20.1",
    3578: "1.20.2",
    3698: "1.20.3",
    3700: "1.20.4",
    3837: "1.20.5",
    3839: "1.20.6",
    3953: "1.21",
    3955: "1.21.1",
    4080: "1.21.2",
    4082: "1.21.3",
    4189: "1.21.4",
    4325: "1.21.5",
    4435: "1.21.6",
    4438: "1.21.7",
    4440: "1.21.8",
}


def merged(extra=None):
    table = dict(KNOWN_VERSIONS)
    if extra:
        table.update(extra)
    return table


def version_name(data_version, extra=None):
    if data_version is None:
        return UNKNOWN
    return merged(extra).get(data_version, UNKNOWN)


def latest_data_version(extra=None):
    return max(merged(extra))
