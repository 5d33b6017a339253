"""Render and save the Sparkle appcast (an RSS 2.0 feed with one item)."""

import logging
import os
import tempfile
import xml.etree.ElementTree as ET
from datetime import datetime
from email.utils import format_datetime
from pathlib import Path

from sparkle_release.constants import APPCAST_FILENAME, ENCLOSURE_TYPE, SPARKLE_NS, URL_PLACEHOLDER
from sparkle_release.models import BundleMetadata, SignatureResult

logger = logging.getLogger(__name__)

ET.register_namespace("sparkle", SPARKLE_NS)


def sparkle_tag(name: str) -> str:
    return f"{{{SPARKLE_NS}}}{name}"


def format_pub_date(dt: datetime | None = None) -> str:
    """RFC 822 date, always with English day/month names (Qt may have set a non-English C locale)."""
    dt = dt or datetime.now().astimezone()
    if dt.tzinfo is None:
        dt = dt.astimezone()
    return format_datetime(dt)


def build_feed(
    metadata: BundleMetadata,
    signature: SignatureResult,
    download_url: str | None = None,
    *,
    now: datetime | None = None,
) -> ET.ElementTree:
    root = ET.Element("rss", {"version": "2.0"})
    channel = ET.SubElement(root, "channel")
    ET.SubElement(channel, "title").text = f"{metadata.name} Updates"

    item = ET.SubElement(channel, "item")
    ET.SubElement(item, "title").text = metadata.short_version
    ET.SubElement(item, "pubDate").text = format_pub_date(now)
    ET.SubElement(item, sparkle_tag("version")).text = metadata.version
    ET.SubElement(item, sparkle_tag("shortVersionString")).text = metadata.short_version
    ET.SubElement(
        item,
        "enclosure",
        {
            "url": (download_url or "").strip() or URL_PLACEHOLDER,
            sparkle_tag("edSignature"): signature.signature,
            "length": signature.length,
            "type": ENCLOSURE_TYPE,
        },
    )

    tree = ET.ElementTree(root)
    ET.indent(tree, space="    ")
    return tree


def render_appcast(
    metadata: BundleMetadata,
    signature: SignatureResult,
    download_url: str | None = None,
    *,
    now: datetime | None = None,
) -> str:
    """Return the appcast XML as text. Every value is escaped by the serializer."""
    tree = build_feed(metadata, signature, download_url, now=now)
    body = ET.tostring(tree.getroot(), encoding="unicode")
    return f'<?xml version="1.0" encoding="utf-8" standalone="yes"?>\n{body}\n'


def save_appcast(xml: str, directory: str | Path) -> Path:
    """Write *xml* to ``<directory>/appcast.xml``, replacing any existing file in one step."""
    destination = Path(directory) / APPCAST_FILENAME
    fd, tmp_name = tempfile.mkstemp(prefix=".appcast-", suffix=".xml", dir=destination.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(xml)
        os.chmod(tmp_name, 0o644)
        os.replace(tmp_name, destination)
    except BaseException:
        if os.path.exists(tmp_name):
            os.remove(tmp_name)
        raise
    logger.info("Auto-saved XML to: %s", destination)
    return destination
