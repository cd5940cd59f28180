import pytest

from pqkd_client.builder import KmeRequestBuilder, QrngRequestBuilder
from pqkd_client.exceptions import InvalidFormatError, InvalidSizeError, NumberOfKeysError, SizeOfKeysError
from pqkd_client.models import KmeRequest, Operation, QrngFetch, QrngFormat, QrngSize


class TestKmeRequestBuilder:

    def test_defaults(self):
        request = KmeRequestBuilder(Operation.ENC_KEYS, "Test_2SAE").finalize()
        assert request == KmeRequest(
            operation=Operation.ENC_KEYS,
            sae_id="Test_2SAE",
            size=512,
            number=1,
            key_ids=(),
        )

    def test_valid_sizes_applied(self):
        for size in range(64, 4097, 8):
            request = KmeRequestBuilder(Operation.ENC_KEYS, "sae").with_key_size(size).finalize()
            assert request.size == size

    @pytest.mark.parametrize("size", [0, 8, 63, 100, 4097, 8192])
    def test_invalid_size_fails_at_finalize(self, size):
        builder = KmeRequestBuilder(Operation.ENC_KEYS, "sae").with_key_size(size)
        assert isinstance(builder.error, SizeOfKeysError)
        with pytest.raises(SizeOfKeysError):
            builder.finalize()

    def test_float_size_not_sent(self):
        builder = KmeRequestBuilder(Operation.ENC_KEYS, "sae").with_key_size(512.0)
        with pytest.raises(SizeOfKeysError):
            builder.finalize()

    def test_bool_count_rejected(self):
        builder = KmeRequestBuilder(Operation.ENC_KEYS, "sae").with_key_count(True)
        with pytest.raises(NumberOfKeysError):
            builder.finalize()

    def test_zero_count_fails(self):
        builder = KmeRequestBuilder(Operation.ENC_KEYS, "sae").with_key_count(0)
        with pytest.raises(NumberOfKeysError):
            builder.finalize()

    def test_count_applied(self):
        request = KmeRequestBuilder(Operation.ENC_KEYS, "sae").with_key_count(10).finalize()
        assert request.number == 10

    def test_first_error_is_sticky(self):
        builder = (
            KmeRequestBuilder(Operation.ENC_KEYS, "sae")
            .with_key_count(0)
            .with_key_size(10)
            .with_key_size(1024)
            .with_key_count(5)
        )
        with pytest.raises(NumberOfKeysError):
            builder.finalize()

    def test_valid_call_after_error_not_applied(self):
        builder = KmeRequestBuilder(Operation.ENC_KEYS, "sae").with_key_size(7)
        builder.with_key_size(1024)
        assert isinstance(builder.error, SizeOfKeysError)

    def test_key_ids_accumulate_after_error(self):
        builder = (
            KmeRequestBuilder(Operation.ENC_KEYS, "sae")
            .with_key_size(7)
            .with_key_id("a")
            .with_key_ids(["b", "c"])
        )
        assert builder.key_ids == ["a", "b", "c"]
        with pytest.raises(SizeOfKeysError):
            builder.finalize()

    def test_key_ids_keep_order_and_duplicates(self):
        request = (
            KmeRequestBuilder(Operation.DEC_KEYS, "sae")
            .with_key_id("c")
            .with_key_ids(["a", "c"])
            .with_key_id("b")
            .finalize()
        )
        assert request.key_ids == ("c", "a", "c", "b")

    def test_original_aliases(self):
        request = (
            KmeRequestBuilder(Operation.ENC_KEYS, "sae")
            .number(4)
            .size(256)
            .key_id("k1")
            .build()
        )
        assert request.number == 4
        assert request.size == 256
        assert request.key_ids == ("k1",)

    def test_cannot_finalize_twice(self):
        builder = KmeRequestBuilder(Operation.STATUS, "sae")
        builder.finalize()
        with pytest.raises(RuntimeError):
            builder.finalize()

    def test_finalized_request_is_immutable(self):
        request = KmeRequestBuilder(Operation.STATUS, "sae").finalize()
        with pytest.raises(AttributeError):
            request.size = 1024


class TestQrngRequestBuilder:

    def test_fetch(self):
        fetch = QrngRequestBuilder(QrngFormat.HEX, 20).finalize()
        assert fetch == QrngFetch(format=QrngFormat.HEX, size=20)

    def test_size_units_normalized(self):
        fetch = QrngRequestBuilder(QrngFormat.BYTES, QrngSize.kilobytes(2)).finalize()
        assert fetch.size == 2048

    def test_format_from_name(self):
        assert QrngRequestBuilder("base64", 1).format is QrngFormat.BASE64

    def test_unknown_format(self):
        with pytest.raises(InvalidFormatError, match="octal"):
            QrngRequestBuilder("octal", 20)

    def test_string_size_fails_at_finalize(self):
        builder = QrngRequestBuilder("hex", "20")
        with pytest.raises(InvalidSizeError):
            builder.finalize()

    def test_oversized_fails_at_finalize(self):
        builder = QrngRequestBuilder(QrngFormat.BYTES, 16 * 1024 * 1024 + 1)
        with pytest.raises(InvalidSizeError):
            builder.finalize()

    def test_error_is_sticky(self):
        builder = QrngRequestBuilder(QrngFormat.HEX, 300 * 1024).with_size(10)
        with pytest.raises(InvalidSizeError) as exc_info:
            builder.finalize()
        assert exc_info.value.found == 300 * 1024

    def test_with_size_replaces(self):
        fetch = QrngRequestBuilder(QrngFormat.HEX, 10).with_size(64).finalize()
        assert fetch.size == 64
