import httpx
import pytest

from flow_forwarder.core.models import WriteUnit
from flow_forwarder.core.parser import parse_line
from flow_forwarder.core.transform import flow_to_write_unit
from flow_forwarder.errors import SinkWriteError
from flow_forwarder.sinks.influx import InfluxSink, encode_line_protocol
from tests.conftest import flow_json


def test_encode_line_protocol_for_a_flow():
    unit = flow_to_write_unit(parse_line(flow_json()))
    line = encode_line_protocol(unit)

    assert line.startswith(
        "netflow,flow_type=SFLOW_5,src_addr=10.1.2.3,dst_addr=10.0.0.2,proto=TCP,sampler_address=10.0.0.254 "
    )
    assert " bytes=1500i,packets=3i,src_port=51514i,dst_port=443i," in line
    assert line.endswith(" 1700000000000000000")


def test_encode_escapes_special_characters():
    unit = WriteUnit(
        measurement="net flow,x",
        tags=(("flow type", "a=b,c d"),),
        fields=(("by tes", 1),),
        timestamp_ns=7,
    )
    assert encode_line_protocol(unit) == r"net\ flow\,x,flow\ type=a\=b\,c\ d by\ tes=1i 7"


def _sink(handler):
    client = httpx.AsyncClient(transport=httpx.MockTransport(handler))
    return InfluxSink(url="http://influx:8086/", token="tkn", org="netops", client=client)


@pytest.mark.asyncio
async def test_write_posts_line_protocol():
    seen = []

    def handler(request: httpx.Request) -> httpx.Response:
        seen.append(request)
        return httpx.Response(204)

    sink = _sink(handler)
    units = [flow_to_write_unit(parse_line(flow_json(sequence_num=i))) for i in range(3)]
    await sink.write("flows", units)

    assert len(seen) == 1
    req = seen[0]
    assert req.method == "POST"
    assert req.url.path == "/api/v2/write"
    assert req.url.params["org"] == "netops"
    assert req.url.params["bucket"] == "flows"
    assert req.url.params["precision"] == "ns"
    assert req.headers["Authorization"] == "Token tkn"
    body = req.content.decode("utf-8").split("\n")
    assert len(body) == 3
    assert "sequence_num=2i" in body[2]


@pytest.mark.asyncio
async def test_non_2xx_raises_sink_write_error():
    sink = _sink(lambda request: httpx.Response(503, text="overloaded"))
    with pytest.raises(SinkWriteError) as exc:
        await sink.write("flows", [flow_to_write_unit(parse_line(flow_json()))])
    assert exc.value.status == 503
    assert "overloaded" in str(exc.value)


@pytest.mark.asyncio
async def test_transport_error_raises_sink_write_error():
    def handler(request):
        raise httpx.ConnectError("connection refused", request=request)

    sink = _sink(handler)
    with pytest.raises(SinkWriteError) as exc:
        await sink.write("flows", [flow_to_write_unit(parse_line(flow_json()))])
    assert exc.value.status is None


@pytest.mark.asyncio
async def test_empty_batch_is_not_sent():
    calls = []
    sink = _sink(lambda request: calls.append(request) or httpx.Response(204))
    await sink.write("flows", [])
    assert calls == []
