import os
import stat
import xml.etree.ElementTree as ET
from datetime import datetime, timedelta, timezone
from pathlib import Path

import pytest

from sparkle_release.constants import SPARKLE_NS
from sparkle_release.core.appcast import format_pub_date, render_appcast, save_appcast
from sparkle_release.models import BundleMetadata, SignatureResult

NOW = datetime(2024, 3, 5, 14, 7, 9, tzinfo=timezone.utc)
NS = {"sparkle": SPARKLE_NS}


@pytest.fixture
def metadata():
    return BundleMetadata(path=Path("/builds/MyApp.app"), name="MyApp", version="42", short_version="1.2.3")


@pytest.fixture
def signature():
    return SignatureResult(signature="abc123", length="4096")


def parse(xml: str) -> ET.Element:
    return ET.fromstring(xml.encode("utf-8"))


def test_feed_structure(metadata, signature):
    xml = render_appcast(metadata, signature, "https://example.com/MyApp-v1.2.3.zip", now=NOW)
    assert xml.startswith('<?xml version="1.0" encoding="utf-8" standalone="yes"?>\n<rss ')

    root = parse(xml)
    assert root.tag == "rss" and root.get("version") == "2.0"
    channel = root.find("channel")
    assert channel.findtext("title") == "MyApp Updates"

    items = channel.findall("item")
    assert len(items) == 1
    item = items[0]
    assert item.findtext("title") == "1.2.3"
    assert item.findtext("pubDate") == "Tue, 05 Mar 2024 14:07:09 +0000"
    assert item.findtext("sparkle:version", namespaces=NS) == "42"
    assert item.findtext("sparkle:shortVersionString", namespaces=NS) == "1.2.3"

    enclosure = item.find("enclosure")
    assert enclosure.get("url") == "https://example.com/MyApp-v1.2.3.zip"
    assert enclosure.get(f"{{{SPARKLE_NS}}}edSignature") == "abc123"
    assert enclosure.get("length") == "4096"
    assert enclosure.get("type") == "application/octet-stream"


def test_sparkle_prefix_is_declared(metadata, signature):
    xml = render_appcast(metadata, signature, now=NOW)
    assert f'xmlns:sparkle="{SPARKLE_NS}"' in xml
    assert "<sparkle:version>42</sparkle:version>" in xml
    assert 'sparkle:edSignature="abc123"' in xml


@pytest.mark.parametrize("url", [None, "", "   "])
def test_placeholder_url_without_download_link(metadata, signature, url):
    xml = render_appcast(metadata, signature, url, now=NOW)
    assert parse(xml).find("channel/item/enclosure").get("url") == "INSERT_URL_HERE"


def test_values_are_escaped(signature):
    md = BundleMetadata(path=Path("/b/A&B <Beta>.app"), name="A&B <Beta>", version="1", short_version="1.0")
    xml = render_appcast(md, signature, "https://example.com/dl?a=1&b=2", now=NOW)

    assert "A&amp;B &lt;Beta&gt; Updates" in xml
    assert 'url="https://example.com/dl?a=1&amp;b=2"' in xml
    root = parse(xml)
    assert root.findtext("channel/title") == "A&B <Beta> Updates"
    assert root.find("channel/item/enclosure").get("url") == "https://example.com/dl?a=1&b=2"


def test_changing_url_only_changes_url(metadata, signature):
    before = render_appcast(metadata, signature, None, now=NOW)
    after = render_appcast(metadata, signature, "https://example.com/x.zip", now=NOW)
    assert before.replace("INSERT_URL_HERE", "https://example.com/x.zip") == after


def test_pub_date_keeps_offset():
    tz = timezone(timedelta(hours=-7))
    assert format_pub_date(datetime(2023, 12, 31, 23, 59, 0, tzinfo=tz)) == "Sun, 31 Dec 2023 23:59:00 -0700"


def test_pub_date_naive_datetime_gets_local_zone():
    value = format_pub_date(datetime(2024, 1, 2, 3, 4, 5))
    assert value.startswith("Tue, 02 Jan 2024 03:04:05 ")
    assert value[-5] in "+-"


def test_save_writes_and_overwrites(tmp_path):
    path = save_appcast("<rss>first</rss>\n", tmp_path)
    assert path == tmp_path / "appcast.xml"
    assert path.read_text(encoding="utf-8") == "<rss>first</rss>\n"
    assert stat.S_IMODE(os.stat(path).st_mode) == 0o644

    save_appcast("<rss>second</rss>\n", tmp_path)
    assert path.read_text(encoding="utf-8") == "<rss>second</rss>\n"
    assert [p.name for p in tmp_path.iterdir()] == ["appcast.xml"]


def test_save_into_missing_directory_raises(tmp_path):
    with pytest.raises(OSError):
        save_appcast("<rss/>", tmp_path / "nope")
