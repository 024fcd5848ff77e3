"""Thin helpers around urllib for talking to the release host."""

from __future__ import annotations

import urllib.request

from dicom_json_installer import __version__

USER_AGENT = f"dicom-json-installer/{__version__}"


def open_url(url: str, timeout: float | None = None, accept: str | None = None):
    """
    Open ``url`` with the installer's headers.

    Redirects are followed by urllib's default handler. Non-success statuses
    raise ``urllib.error.HTTPError``.

    Parameters
    ----------
    url : str
        URL to fetch
    timeout : float | None
        Socket timeout in seconds, ``None`` for the library default
    accept : str | None
        Optional ``Accept`` header value

    Returns
    -------
    http.client.HTTPResponse
        Open response, to be used as a context manager
    """
    headers = {"User-Agent": USER_AGENT}
    if accept:
        headers["Accept"] = accept
    request = urllib.request.Request(url, headers=headers)

    if timeout is None:
        return urllib.request.urlopen(request)
    return urllib.request.urlopen(request, timeout=timeout)
