import random

from school_bot.utils.identifiers import generate_grade_id, generate_record_id, is_grade_id, is_record_id


def test_record_ids_are_ten_digits():
    rng = random.Random(7)
    for _ in range(200):
        value = generate_record_id(set(), rng)
        assert is_record_id(value)
        assert not value.startswith("0")


def test_record_id_skips_taken_values():
    taken_rng = random.Random(3)
    taken = {generate_record_id(set(), taken_rng) for _ in range(5)}

    value = generate_record_id(taken, random.Random(3))

    assert value not in taken


def test_generated_ids_are_unique():
    issued = set()
    rng = random.Random(11)
    for _ in range(500):
        issued.add(generate_record_id(issued, rng))
    assert len(issued) == 500


def test_is_record_id_rejects_other_shapes():
    assert not is_record_id("123")
    assert not is_record_id("12345678901")
    assert not is_record_id("12345abcde")


def test_grade_ids_are_hex_tokens():
    existing = {generate_grade_id(set()) for _ in range(10)}
    value = generate_grade_id(existing)
    assert len(value) == 32
    assert int(value, 16) >= 0
    assert value not in existing
    assert is_grade_id(value)


def test_is_grade_id_rejects_other_shapes():
    assert not is_grade_id("")
    assert not is_grade_id("legacy-7")
    assert not is_grade_id("A" * 32)
