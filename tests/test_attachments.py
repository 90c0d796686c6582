import time

import pytest

from conftest import FakeUpload

from ai_doctor.core.attachments import (
    MAX_ATTACHMENT_BYTES,
    LocalUpload,
    encode_attachment,
    encode_attachments,
    filter_uploads,
)
from ai_doctor.core.errors import INVALID_FILES_MESSAGE, AttachmentRejected, EncodingError


@pytest.mark.parametrize("media_type", ["image/jpeg", "image/png", "application/pdf"])
def test_allowed_types_under_limit_are_accepted(media_type):
    f = FakeUpload("a", media_type, size=MAX_ATTACHMENT_BYTES - 1)
    accepted, rejection = filter_uploads([f])
    assert accepted == [f]
    assert rejection is None


@pytest.mark.parametrize(
    "upload",
    [
        FakeUpload("scan.gif", "image/gif"),
        FakeUpload("notes.txt", "text/plain"),
        FakeUpload("big.pdf", "application/pdf", size=MAX_ATTACHMENT_BYTES),
        FakeUpload("huge.png", "image/png", size=MAX_ATTACHMENT_BYTES + 1),
    ],
)
def test_invalid_upload_is_dropped_with_warning(upload):
    accepted, rejection = filter_uploads([upload])
    assert accepted == []
    assert isinstance(rejection, AttachmentRejected)
    assert str(rejection) == INVALID_FILES_MESSAGE
    assert rejection.rejected == [upload.name]


def test_partial_batch_keeps_valid_files_in_order(pdf, png):
    gif = FakeUpload("a.gif", "image/gif")
    big = FakeUpload("b.jpg", "image/jpeg", size=MAX_ATTACHMENT_BYTES * 2)
    accepted, rejection = filter_uploads([pdf, gif, png, big])
    assert accepted == [pdf, png]
    # one aggregate warning, not one per file
    assert str(rejection) == INVALID_FILES_MESSAGE
    assert rejection.rejected == ["a.gif", "b.jpg"]


def test_encode_attachment_reads_full_content(pdf):
    att = encode_attachment(pdf)
    assert att.name == "cbc.pdf"
    assert att.media_type == "application/pdf"
    assert att.payload == b"%PDF-1.4 report"
    assert att.size_bytes == len(b"%PDF-1.4 report")


def test_encode_failure_raises_encoding_error():
    broken = FakeUpload("broken.pdf", "application/pdf", fail=True)
    with pytest.raises(EncodingError, match="broken.pdf"):
        encode_attachment(broken)


def test_encode_attachments_keeps_selection_order():
    class SlowUpload(FakeUpload):
        def __init__(self, name, delay):
            super().__init__(name, "image/png", name.encode())
            self.delay = delay

        def getvalue(self):
            time.sleep(self.delay)
            return super().getvalue()

    uploads = [SlowUpload("first", 0.05), SlowUpload("second", 0.0), SlowUpload("third", 0.02)]
    result = encode_attachments(uploads)
    assert [a.name for a in result] == ["first", "second", "third"]


def test_encode_attachments_empty():
    assert encode_attachments([]) == []


def test_encode_attachments_propagates_failure(pdf):
    with pytest.raises(EncodingError):
        encode_attachments([pdf, FakeUpload("x.png", "image/png", fail=True)])


def test_local_upload(tmp_path):
    p = tmp_path / "report.pdf"
    p.write_bytes(b"%PDF-1.4")
    up = LocalUpload(p)
    assert (up.name, up.type, up.size) == ("report.pdf", "application/pdf", 8)
    assert encode_attachment(up).payload == b"%PDF-1.4"


def test_local_upload_read_error_is_encoding_error(tmp_path):
    p = tmp_path / "gone.png"
    p.write_bytes(b"x")
    up = LocalUpload(p)
    p.unlink()
    with pytest.raises(EncodingError):
        encode_attachment(up)
