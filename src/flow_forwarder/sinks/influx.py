from __future__ import annotations
import logging
from typing import Optional, Sequence

import httpx

from flow_forwarder.core.models import WriteUnit
from flow_forwarder.errors import SinkWriteError

logger = logging.getLogger(__name__)

# References
# InfluxDB v2 write endpoint: POST /api/v2/write?org=..&bucket=..&precision=ns
# Line protocol: measurement[,tag=value...] field=value[,field=value...] timestamp


def _escape(value: str, specials: str) -> str:
    out = value.replace("\\", "\\\\")
    for ch in specials:
        out = out.replace(ch, "\\" + ch)
    return out


def _escape_measurement(value: str) -> str:
    return _escape(value, ", ")


def _escape_key(value: str) -> str:
    # tag keys, tag values and field keys share the same rules
    return _escape(value, ",= ")


def _format_field(value) -> str:
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, int):
        return f"{value}i"
    if isinstance(value, float):
        return repr(value)
    return '"' + str(value).replace("\\", "\\\\").replace('"', '\\"') + '"'


def encode_line_protocol(unit: WriteUnit) -> str:
    """
    Encode one WriteUnit as a single line of InfluxDB line protocol.

    Newlines inside tag values would split the point, so they are replaced
    with spaces (then escaped) rather than sent raw.
    """
    head = _escape_measurement(unit.measurement)
    for k, v in unit.tags:
        head += f",{_escape_key(k)}={_escape_key(v.replace(chr(10), ' '))}"

    fields = ",".join(f"{_escape_key(k)}={_format_field(v)}" for k, v in unit.fields)
    return f"{head} {fields} {unit.timestamp_ns}"


class InfluxSink:
    """
    InfluxDB v2 HTTP sink.

    One write call is one POST. Status 2xx means the batch was accepted,
    anything else raises SinkWriteError. Retries are the dispatcher's job.

    client
      Optional preconfigured httpx.AsyncClient. Tests pass one with a
      MockTransport. When omitted the sink owns and closes its own client.
    """

    def __init__(
        self,
        url: str,
        token: str,
        org: str,
        timeout_seconds: float = 10.0,
        client: Optional[httpx.AsyncClient] = None,
    ):
        self.url = url.rstrip("/")
        self.org = org
        self._owns_client = client is None
        self._client = client or httpx.AsyncClient(timeout=timeout_seconds)
        self._headers = {
            "Authorization": f"Token {token}",
            "Content-Type": "text/plain; charset=utf-8",
            "Accept": "application/json",
        }

    async def write(self, bucket: str, units: Sequence[WriteUnit]) -> None:
        if not units:
            return

        body = "\n".join(encode_line_protocol(u) for u in units)
        params = {"org": self.org, "bucket": bucket, "precision": "ns"}

        try:
            resp = await self._client.post(
                f"{self.url}/api/v2/write",
                params=params,
                content=body.encode("utf-8"),
                headers=self._headers,
            )
        except httpx.HTTPError as e:
            raise SinkWriteError(f"influxdb request failed: {e!r}") from e

        if not (200 <= resp.status_code < 300):
            detail = resp.text.strip()[:500]
            raise SinkWriteError(
                f"influxdb returned {resp.status_code}: {detail}",
                status=resp.status_code,
            )

        logger.debug("influxdb accepted %d points (status %d)", len(units), resp.status_code)

    async def close(self) -> None:
        if self._owns_client:
            await self._client.aclose()
