import logging

import requests
from bs4 import BeautifulSoup

from .storage import DEFAULT_VERSIONS_URL

logger = logging.getLogger("MapTool")

HEADING = "List of data versions"


def _rowspan(cell):
    try:
        return max(1, int(cell.get("rowspan", 1)))
    except ValueError:
        return 1


def _fill_carried(row, carried):
    while len(row) in carried:
        text, remaining = carried.pop(len(row))
        row.append(text)
        if remaining > 1:
            carried[len(row) - 1] = (text, remaining - 1)


def table_rows(table):
    """Cell texts of every row, with rowspan cells repeated on the rows they cover."""
    rows = []
    carried = {}
    for tr in table.find_all("tr"):
        row = []
        for cell in tr.find_all(["td", "th"], recursive=False):
            _fill_carried(row, carried)
            # Header cells never hold a version
            text = "" if cell.name == "th" else cell.get_text(" ", strip=True)
            span = _rowspan(cell)
            if span > 1:
                carried[len(row)] = (text, span - 1)
            row.append(text)
        _fill_carried(row, carried)
        rows.append(row)
    return rows


def find_version_table(soup):
    """The table that follows the last data version heading."""
    headings = soup.find_all(string=lambda text: text and HEADING in text)
    if not headings:
        raise ValueError(f"Could not find the '{HEADING}' heading")
    table = headings[-1].find_next("table")
    if table is None:
        raise ValueError(f"Could not find a table after the '{HEADING}' heading")
    return table


def parse_versions(body):
    """DataVersion -> client version from the wiki page HTML.

    The first column is the client version, the third the data version.
    When a data version appears twice the first row wins.
    """
    soup = BeautifulSoup(body, 'html.parser')

    versions = {}
    for row in table_rows(find_version_table(soup)):
        if len(row) < 3 or not row[0]:
            continue
        try:
            data_version = int(row[2])
        except ValueError:
            continue
        versions.setdefault(data_version, row[0])
    return versions


class VersionsClient:
    def __init__(self, storage):
        self.storage = storage

    def get_headers(self):
        return {
            'User-Agent': 'mcmapper',
            'Accept': 'text/html'
        }

    def fetch_versions(self, url=None):
        url = url or self.storage.config.get("versions_url", DEFAULT_VERSIONS_URL)
        logger.info(f"Loading: {url}")
        resp = requests.get(url, headers=self.get_headers(), timeout=30)
        resp.raise_for_status()
        return parse_versions(resp.text)

    def update_versions(self, url=None):
        try:
            versions = self.fetch_versions(url)
        except (requests.RequestException, ValueError) as e:
            logger.error(f"Could not load data versions: {e}")
            return {"status": "error", "message": str(e)}
        if not versions:
            return {"status": "error", "message": "The versions table was empty"}

        try:
            self.storage.save_versions(versions)
        except OSError as e:
            logger.error(f"Could not save data versions: {e}")
            return {"status": "error", "message": str(e)}
        logger.info(f"Saved {len(versions)} data versions to {self.storage.versions_file}")
        return {"status": "success", "count": len(versions), "file": self.storage.versions_file}
