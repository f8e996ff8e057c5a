import pytest

from academic_control.core.class_code import (
    CLASS_CODE_ALPHABET,
    CLASS_CODE_LENGTH,
    CLASS_CODE_PATTERN,
    generate_class_code,
    normalize_class_code,
)
from academic_control.core.exceptions import ValidationFailed


def test_generate_class_code_format():
    for _ in range(50):
        code = generate_class_code()
        assert len(code) == CLASS_CODE_LENGTH
        assert CLASS_CODE_PATTERN.match(code)
        assert all(ch in CLASS_CODE_ALPHABET for ch in code)


def test_generate_class_code_varies():
    codes = {generate_class_code() for _ in range(20)}
    assert len(codes) > 1


def test_normalize_trims_and_uppercases():
    assert normalize_class_code("  ab12cd ") == "AB12CD"
    assert normalize_class_code("XYZ789") == "XYZ789"


@pytest.mark.parametrize("raw", ["", "ABC12", "ABC1234", "AB-12C", "ÄBC123", None])
def test_normalize_rejects_malformed(raw):
    with pytest.raises(ValidationFailed) as exc:
        normalize_class_code(raw)
    assert exc.value.status_code == 400
    assert exc.value.message == "Invalid class code format"
