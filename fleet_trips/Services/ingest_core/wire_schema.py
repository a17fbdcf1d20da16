# fleet_trips/Services/ingest_core/wire_schema.py
"""
Binary Wire Schema Module
=========================
Protobuf messages for the binary telemetry encoding, package
``fleet_trips.v1``:

    message ReceiptMetadata {
        uint32 worker_id = 1;
        uint32 bytes = 2;
        string client_ip = 3;
        uint32 client_port = 4;
        int64 received_epoch = 5;
        int64 decoded_epoch = 6;
    }

    message TelemetryEnvelope {
        string uuid = 1;
        map<string, string> data = 2;
        ReceiptMetadata metadata = 3;
    }

The descriptors are declared here in Python and registered in a private
descriptor pool at import time, so no protoc step or generated *_pb2 module
is needed.

Usage:
    from fleet_trips.Services.ingest_core.wire_schema import TelemetryEnvelope

    envelope = TelemetryEnvelope(uuid="...", data={"DEVICE_ID": "123"})
    payload = envelope.SerializeToString()
"""

from google.protobuf import descriptor_pb2, descriptor_pool, message_factory

PACKAGE = "fleet_trips.v1"

_FIELD = descriptor_pb2.FieldDescriptorProto


def _field(name: str, number: int, field_type: int, type_name: str = "", repeated: bool = False):
    field = _FIELD(
        name=name,
        number=number,
        type=field_type,
        label=_FIELD.LABEL_REPEATED if repeated else _FIELD.LABEL_OPTIONAL,
    )
    if type_name:
        field.type_name = type_name
    return field


def _build_file() -> descriptor_pb2.FileDescriptorProto:
    file_proto = descriptor_pb2.FileDescriptorProto(
        name="fleet_trips/v1/telemetry.proto",
        package=PACKAGE,
        syntax="proto3",
    )

    metadata = file_proto.message_type.add(name="ReceiptMetadata")
    metadata.field.extend([
        _field("worker_id", 1, _FIELD.TYPE_UINT32),
        _field("bytes", 2, _FIELD.TYPE_UINT32),
        _field("client_ip", 3, _FIELD.TYPE_STRING),
        _field("client_port", 4, _FIELD.TYPE_UINT32),
        _field("received_epoch", 5, _FIELD.TYPE_INT64),
        _field("decoded_epoch", 6, _FIELD.TYPE_INT64),
    ])

    envelope = file_proto.message_type.add(name="TelemetryEnvelope")

    # map<string, string> is sugar for a repeated nested *Entry message
    data_entry = envelope.nested_type.add(name="DataEntry")
    data_entry.field.extend([
        _field("key", 1, _FIELD.TYPE_STRING),
        _field("value", 2, _FIELD.TYPE_STRING),
    ])
    data_entry.options.map_entry = True

    envelope.field.extend([
        _field("uuid", 1, _FIELD.TYPE_STRING),
        _field(
            "data", 2, _FIELD.TYPE_MESSAGE,
            type_name=f".{PACKAGE}.TelemetryEnvelope.DataEntry",
            repeated=True,
        ),
        _field(
            "metadata", 3, _FIELD.TYPE_MESSAGE,
            type_name=f".{PACKAGE}.ReceiptMetadata",
        ),
    ])
    return file_proto


# ============================================================
# DESCRIPTOR REGISTRATION
# ============================================================
_pool = descriptor_pool.DescriptorPool()
_pool.AddSerializedFile(_build_file().SerializeToString())

ReceiptMetadata = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName(f"{PACKAGE}.ReceiptMetadata")
)
TelemetryEnvelope = message_factory.GetMessageClass(
    _pool.FindMessageTypeByName(f"{PACKAGE}.TelemetryEnvelope")
)

# Receipt metadata field -> key used in JSON payloads and idle-activity records
METADATA_KEYS = {
    "worker_id": "WORKER_ID",
    "bytes": "BYTES",
    "client_ip": "CLIENT_IP",
    "client_port": "CLIENT_PORT",
    "received_epoch": "RECEIVED_EPOCH",
    "decoded_epoch": "DECODED_EPOCH",
}
