"""Fixed-layout inter-chain payload for ``SignatureRecord``.

The layout is the ABI encoding of the tuple
``(address signer, uint32 originChainId, string name, string message,
uint256 timestamp)``:

    head (5 x 32-byte words)
        0   signer, left-padded to 32 bytes
        1   origin chain id
        2   offset of name (from start of payload)
        3   offset of message
        4   timestamp
    tail
        name:    32-byte length word + UTF-8 bytes right-padded to 32
        message: 32-byte length word + UTF-8 bytes right-padded to 32

Encode and decode sides must agree bit-for-bit.  The decoder accepts
only the canonical form ``encode_record`` produces: offsets exactly where
the encoder puts them, zero padding, no trailing bytes.  So
``encode_record(decode_record(p)) == p`` for every accepted ``p``.
Changing the layout requires redeploying every peer; there is no schema
version field.
"""

from __future__ import annotations

from guestbook.models.records import (
    ADDRESS_BYTES,
    UINT32_MAX,
    SignatureRecord,
)

WORD = 32
HEAD_SIZE = 5 * WORD


class PayloadDecodeError(ValueError):
    """Raised when a payload does not match the fixed record layout."""


def _word(value: int) -> bytes:
    return value.to_bytes(WORD, "big")


def _padded(data: bytes) -> bytes:
    remainder = len(data) % WORD
    return data + bytes(WORD - remainder) if remainder else data


def _encode_string(text: str) -> bytes:
    raw = text.encode("utf-8")
    return _word(len(raw)) + _padded(raw)


def encode_record(record: SignatureRecord) -> bytes:
    """Serialize a record into its fixed-layout payload bytes."""
    name_tail = _encode_string(record.name)
    message_tail = _encode_string(record.message)
    signer = bytes.fromhex(record.signer[2:])

    head = b"".join(
        (
            bytes(WORD - ADDRESS_BYTES) + signer,
            _word(record.origin_chain_id),
            _word(HEAD_SIZE),
            _word(HEAD_SIZE + len(name_tail)),
            _word(record.timestamp),
        )
    )
    return head + name_tail + message_tail


def _read_word(payload: bytes, offset: int) -> int:
    if offset + WORD > len(payload):
        raise PayloadDecodeError(f"payload truncated at byte {offset}")
    return int.from_bytes(payload[offset : offset + WORD], "big")


def _read_string(payload: bytes, offset: int, expected: int, field: str) -> tuple[str, int]:
    """Read the string tail at *offset*; return it and the offset after its padding."""
    if offset != expected:
        raise PayloadDecodeError(f"{field} offset {offset}, expected {expected}")
    length = _read_word(payload, offset)
    start = offset + WORD
    if start + length > len(payload):
        raise PayloadDecodeError(
            f"{field} length {length} runs past end of payload"
        )
    end = start + len(_padded(bytes(length)))
    if end > len(payload):
        raise PayloadDecodeError(f"{field} padding truncated")
    if any(payload[start + length : end]):
        raise PayloadDecodeError(f"{field} padding has non-zero bytes")
    try:
        text = payload[start : start + length].decode("utf-8")
    except UnicodeDecodeError as exc:
        raise PayloadDecodeError(f"{field} is not valid UTF-8") from exc
    return text, end


def decode_record(payload: bytes) -> SignatureRecord:
    """Parse payload bytes back into a ``SignatureRecord``.

    Raises
    ------
    PayloadDecodeError
        If the payload is truncated, not in canonical layout, or carries
        values that do not fit their declared types.
    """
    if len(payload) < HEAD_SIZE:
        raise PayloadDecodeError(
            f"payload is {len(payload)} bytes, head alone needs {HEAD_SIZE}"
        )

    signer_word = payload[:WORD]
    if any(signer_word[: WORD - ADDRESS_BYTES]):
        raise PayloadDecodeError("signer word has non-zero high bytes")
    signer = "0x" + signer_word[WORD - ADDRESS_BYTES :].hex()

    origin_chain_id = _read_word(payload, WORD)
    if origin_chain_id > UINT32_MAX:
        raise PayloadDecodeError(f"origin chain id {origin_chain_id} exceeds uint32")

    name, name_end = _read_string(payload, _read_word(payload, 2 * WORD), HEAD_SIZE, "name")
    message, end = _read_string(payload, _read_word(payload, 3 * WORD), name_end, "message")
    if end != len(payload):
        raise PayloadDecodeError(f"{len(payload) - end} trailing byte(s) after message")
    timestamp = _read_word(payload, 4 * WORD)

    return SignatureRecord(
        signer=signer,
        origin_chain_id=origin_chain_id,
        name=name,
        message=message,
        timestamp=timestamp,
    )


def encode_hex(record: SignatureRecord) -> str:
    return "0x" + encode_record(record).hex()


def decode_hex(text: str) -> SignatureRecord:
    """Decode a ``0x``-prefixed (or bare) hex payload."""
    body = text.strip()
    if body.startswith(("0x", "0X")):
        body = body[2:]
    try:
        raw = bytes.fromhex(body)
    except ValueError as exc:
        raise PayloadDecodeError(f"payload is not valid hex: {exc}") from exc
    return decode_record(raw)
