import pytest

from zkqr.codec import MAGIC, ProofArtifact, decode_text, deserialize, encode_text, serialize
from zkqr.crypto import FIELD_MODULUS
from zkqr.errors import CorruptArtifact, InvalidEncoding


def _artifact() -> ProofArtifact:
    return ProofArtifact(proof_bytes=b"\x01\x02proof", public_inputs=(7, FIELD_MODULUS - 1, 0))


def test_serialize_layout():
    data = serialize(_artifact())
    assert data.startswith(MAGIC + b"\x01\x00\x03")
    assert len(data) == 4 + 1 + 2 + 3 * 32 + 4 + 7
    assert deserialize(data) == _artifact()


def test_text_roundtrip():
    data = serialize(_artifact())
    text = encode_text(data)
    assert text.isascii()
    assert decode_text(text) == data
    assert deserialize(decode_text(text)) == _artifact()


def test_empty_proof_and_no_inputs():
    artifact = ProofArtifact(proof_bytes=b"", public_inputs=())
    assert deserialize(serialize(artifact)) == artifact


def test_serialize_rejects_out_of_field_inputs():
    with pytest.raises(ValueError):
        serialize(ProofArtifact(proof_bytes=b"", public_inputs=(FIELD_MODULUS,)))


def test_deserialize_rejects_corruption():
    data = serialize(_artifact())
    with pytest.raises(CorruptArtifact):
        deserialize(data[:5])
    with pytest.raises(CorruptArtifact):
        deserialize(b"XXXX" + data[4:])
    with pytest.raises(CorruptArtifact):
        deserialize(data[:4] + b"\x02" + data[5:])
    with pytest.raises(CorruptArtifact):
        deserialize(data[:40])
    with pytest.raises(CorruptArtifact):
        deserialize(data[:-1])
    with pytest.raises(CorruptArtifact):
        deserialize(data + b"\x00")


def test_deserialize_rejects_non_canonical_input():
    data = bytearray(serialize(ProofArtifact(proof_bytes=b"p", public_inputs=(0,))))
    data[7:39] = b"\xff" * 32
    with pytest.raises(CorruptArtifact):
        deserialize(bytes(data))


def test_decode_text_rejects_garbage():
    with pytest.raises(InvalidEncoding):
        decode_text("not base64!")
    with pytest.raises(InvalidEncoding):
        decode_text("AAA")
    with pytest.raises(InvalidEncoding):
        decode_text("ÀÀÀÀ")


def test_decode_text_rejects_non_canonical_padding():
    assert decode_text("QQ==") == b"A"
    with pytest.raises(InvalidEncoding):
        decode_text("QR==")
    with pytest.raises(InvalidEncoding):
        decode_text("QQ==\n")
