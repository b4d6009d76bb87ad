import io

import pytest

from archsim.trace import RECORD_SIZE, OpType, TraceRecord, read_records


def _sample():
    return TraceRecord(
        inst_addr=0x401000,
        op_type=OpType.CBR,
        dest=5,
        dest_needed=1,
        src1_reg=3,
        src2_reg=4,
        src1_needed=1,
        src2_needed=0,
        cc_read=1,
        cc_write=0,
        mem_addr=0x7FFF0000,
        mem_write=0,
        mem_read=1,
        br_dir=1,
        br_target=0x401040,
    )


def test_record_size():
    assert len(_sample().pack()) == RECORD_SIZE == 48


def test_round_trip():
    rec = _sample()
    assert TraceRecord.unpack(rec.pack()) == rec


def test_default_packs_to_zeros():
    assert TraceRecord().pack() == bytes(RECORD_SIZE)


def test_field_offsets():
    data = TraceRecord(inst_addr=1, op_type=2, mem_addr=3, br_target=4).pack()
    assert data[0:8] == (1).to_bytes(8, "little")
    assert data[8] == 2
    assert data[24:32] == (3).to_bytes(8, "little")
    assert data[40:48] == (4).to_bytes(8, "little")


def test_unpack_wrong_length():
    with pytest.raises(ValueError):
        TraceRecord.unpack(bytes(RECORD_SIZE - 1))


def test_pack_out_of_range():
    with pytest.raises(ValueError):
        TraceRecord(dest=256).pack()


def test_read_records_stops_on_partial():
    a = _sample()
    b = TraceRecord(inst_addr=9)
    stream = io.BytesIO(a.pack() + b.pack() + b"\x00" * 10)
    assert list(read_records(stream)) == [a, b]


def test_read_records_empty():
    assert list(read_records(io.BytesIO(b""))) == []


def test_op_type_values():
    assert OpType(3) is OpType.CBR
    assert OpType(1) is OpType.LD
    data = TraceRecord(op_type=OpType.CBR).pack()
    assert TraceRecord.unpack(data).op_type == OpType.CBR