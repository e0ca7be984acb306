from datetime import timedelta


def _preview(client, image, mime="image/jpeg", **form):
    return client.post(
        "/validation/preview",
        data=form,
        files={"image": ("capture", image, mime)},
    )


def test_preview_returns_report_without_persisting(client, fresh_jpeg):
    res = _preview(client, fresh_jpeg, ward="Rohini", gpsLatitude="28.7001", gpsLongitude="77.1001")
    assert res.status_code == 200
    body = res.json()
    assert body["validation"]["overallScore"] == 100
    assert body["exif"]["imageSize"] == {"width": 800, "height": 600}
    assert client.get("/incidents").json()["pagination"]["total"] == 0


def test_preview_reports_format_failure(client, fresh_jpeg):
    body = _preview(client, fresh_jpeg, mime="image/gif", ward="Rohini").json()
    quality = body["validation"]["quality"]
    assert quality["passed"] is False
    assert quality["format"] == "image/gif"
    assert body["validation"]["overallScore"] == 75


def test_preview_unreadable_bytes_treated_as_no_exif(client):
    body = _preview(client, b"not an image" * 10000).json()
    assert body["exif"] is None
    assert body["validation"]["timestamp"]["passed"] is False
    assert body["validation"]["location"]["passed"] is False


def test_preview_stale_photo_flagged(client, image_factory, utcnow):
    photo = image_factory(taken_at=utcnow - timedelta(hours=30))
    ts = _preview(client, photo, ward="Rohini").json()["validation"]["timestamp"]
    assert ts["passed"] is True
    assert ts["needsReview"] is True
