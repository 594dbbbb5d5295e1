"""QR codes and itms-services manifests for installing built packages on devices."""

from __future__ import annotations

import logging
import plistlib
from pathlib import Path
from typing import Any
from urllib.parse import quote
from xml.parsers.expat import ExpatError

import segno

from cloudops.domain import ItmsPlistOptions, QrData

ITMS_SERVICES_URL = "itms-services://?action=download-manifest&url={manifest}"
QR_IMAGE_SCALE = 6

_PLIST_START = b"<?xml"
_PLIST_END = b"</plist>"

logger = logging.getLogger(__name__)


def qr_image_data(text: str) -> str:
    """PNG data URI of a QR code encoding ``text``."""

    return segno.make_qr(text).png_data_uri(scale=QR_IMAGE_SCALE)


def build_qr_data(original_url: str, qr_text: str | None = None) -> QrData:
    return QrData(original_url=original_url, image_data=qr_image_data(qr_text or original_url))


def build_itms_plist(options: ItmsPlistOptions) -> bytes:
    """Serialize the manifest iOS reads when following an itms-services link."""

    manifest = {
        "items": [
            {
                "assets": [{"kind": "software-package", "url": options.url}],
                "metadata": {
                    "bundle-identifier": options.project_id,
                    "bundle-version": options.bundle_version,
                    "kind": "software",
                    "title": options.project_name,
                },
            }
        ]
    }
    return plistlib.dumps(manifest)


def itms_services_link(manifest_url: str) -> str:
    return ITMS_SERVICES_URL.format(manifest=quote(manifest_url, safe=""))


def read_provision(path: Path) -> dict[str, Any] | None:
    """Return the plist embedded in a signed ``.mobileprovision``, if readable."""

    content = path.read_bytes()
    start = content.find(_PLIST_START)
    end = content.find(_PLIST_END, start)
    if start < 0 or end < 0:
        return None
    try:
        data = plistlib.loads(content[start : end + len(_PLIST_END)])
    except (plistlib.InvalidFileException, ExpatError):
        logger.debug("Provision %s does not embed a valid plist", path)
        return None
    return data if isinstance(data, dict) else None


def allows_device_install(options: ItmsPlistOptions) -> bool:
    """Whether the package can be installed over the air.

    App Store profiles list no devices and cannot be installed this way. A
    provision that cannot be read is assumed to allow it.
    """

    if options.path_to_provision is None:
        return True
    provision = read_provision(Path(options.path_to_provision))
    if provision is None:
        return True
    return bool(provision.get("ProvisionedDevices") or provision.get("ProvisionsAllDevices"))


__all__ = [
    "ITMS_SERVICES_URL",
    "allows_device_install",
    "build_itms_plist",
    "build_qr_data",
    "itms_services_link",
    "qr_image_data",
    "read_provision",
]
