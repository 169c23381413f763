
# Magic-number sniffing for uploaded invoice images. The client-supplied
# content type is only checked for "image/*", so the stored MIME type comes
# from the bytes themselves.

_SIGNATURES = (
    (b"\x89PNG", "image/png"),
    (b"\xff\xd8\xff", "image/jpeg"),
    (b"GIF8", "image/gif"),
    (b"BM", "image/bmp"),
)


def detect_image_mime_type(image_bytes: bytes) -> str:
    if len(image_bytes) < 4:
        return "application/octet-stream"

    if image_bytes[:4] == b"RIFF" and image_bytes[8:12] == b"WEBP":
        return "image/webp"

    for signature, mime_type in _SIGNATURES:
        if image_bytes.startswith(signature):
            return mime_type

    # Most uploads are phone photos
    return "image/jpeg"
