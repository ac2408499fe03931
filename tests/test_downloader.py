"""Tests for the per-post image prefetcher."""
import asyncio

from conftest import FakeFetcher, image_url, make_fetcher
from src.downloader import ImageDownloader


def run(coro):
    return asyncio.run(coro)


class TestShortCircuit:
    """Posts that need no work."""

    def test_already_downloaded(self, tmp_path, make_item):
        """Test a finished post is not probed again."""
        fetcher = make_fetcher(["a"])
        item = make_item(["a"])
        item.images_downloaded = True

        assert run(ImageDownloader(fetcher).download_images(tmp_path, item)) is True
        assert fetcher.head_calls == []
        assert fetcher.get_calls == []

    def test_no_images_marks_done(self, tmp_path, make_item):
        """Test a post without images becomes terminally done."""
        item = make_item([])

        assert run(ImageDownloader(FakeFetcher()).download_images(tmp_path, item)) is True
        assert item.images_downloaded is True

    def test_nothing_qualifies_marks_done(self, tmp_path, make_item):
        """Test a post whose images are all too large is not retried."""
        fetcher = make_fetcher(["a", "b"], size=10 * 1024 * 1024)
        item = make_item(["a", "b"])

        assert run(ImageDownloader(fetcher, max_image_bytes=1024).download_images(tmp_path, item)) is True
        assert item.images_downloaded is True
        assert item.image_paths is None
        assert fetcher.get_calls == []


class TestDownload:
    """Downloading selected images."""

    def test_downloads_selected_images(self, tmp_path, make_item):
        """Test all selected images land on disk and are tracked."""
        fetcher = make_fetcher(["a", "b", "c", "d"])
        item = make_item(["a", "b", "c", "d"])

        assert run(ImageDownloader(fetcher).download_images(tmp_path, item)) is True

        expected = {str(tmp_path / f"{n}.jpg") for n in "abc"}
        assert set(item.image_paths) == expected
        assert item.images_downloaded is True
        assert (tmp_path / "a.jpg").read_bytes() == f"bytes of {image_url('a')}".encode()
        assert not (tmp_path / "d.jpg").exists()
        assert not list(tmp_path.glob("*.part"))

    def test_long_abstract_limits_to_one(self, tmp_path, make_item):
        """Test the count policy is applied from the abstract."""
        fetcher = make_fetcher(["a", "b", "c"])
        item = make_item(["a", "b", "c"], abstract="x" * 100)

        run(ImageDownloader(fetcher, abstract_threshold=40).download_images(tmp_path, item))

        assert item.image_paths == [str(tmp_path / "a.jpg")]
        assert fetcher.get_calls == [image_url("a")]

    def test_idempotent(self, tmp_path, make_item):
        """Test a second call changes nothing and downloads nothing."""
        fetcher = make_fetcher(["a", "b"])
        item = make_item(["a", "b"])
        downloader = ImageDownloader(fetcher)

        run(downloader.download_images(tmp_path, item))
        paths = list(item.image_paths)
        fetcher.get_calls.clear()
        run(downloader.download_images(tmp_path, item))

        assert item.image_paths == paths
        assert fetcher.get_calls == []

    def test_repairs_untracked_file(self, tmp_path, make_item):
        """Test an image already on disk is recorded instead of fetched again."""
        fetcher = make_fetcher(["a", "b"])
        item = make_item(["a", "b"])
        (tmp_path / "a.jpg").write_bytes(b"from an earlier run")

        assert run(ImageDownloader(fetcher).download_images(tmp_path, item)) is True

        assert str(tmp_path / "a.jpg") in item.image_paths
        assert fetcher.get_calls == [image_url("b")]
        assert (tmp_path / "a.jpg").read_bytes() == b"from an earlier run"

    def test_tracked_path_not_duplicated(self, tmp_path, make_item):
        """Test a path already in image_paths is not appended twice."""
        fetcher = make_fetcher(["a"])
        item = make_item(["a"])
        item.image_paths = [str(tmp_path / "a.jpg")]
        item.images_downloaded = False

        assert run(ImageDownloader(fetcher).download_images(tmp_path, item)) is True
        assert item.image_paths == [str(tmp_path / "a.jpg")]
        assert fetcher.get_calls == []


class TestPartialFailure:
    """Failures of single images."""

    def test_one_failure_does_not_abort_siblings(self, tmp_path, make_item, diagnostics):
        """Test img2 failing leaves img1 and img3 downloaded, and only img2 is retried."""
        fetcher = make_fetcher(["img1", "img2", "img3"], failing=[image_url("img2")])
        item = make_item(["img1", "img2", "img3"])
        downloader = ImageDownloader(fetcher, diagnostics=diagnostics)

        assert run(downloader.download_images(tmp_path, item)) is False
        assert item.images_downloaded is False
        assert set(item.image_paths) == {str(tmp_path / "img1.jpg"), str(tmp_path / "img3.jpg")}

        label, context = diagnostics.reports[0]
        assert label == "download_images"
        assert [e.url for e in context["errors"]] == [image_url("img2")]

        fetcher.failing.clear()
        fetcher.get_calls.clear()
        assert run(downloader.download_images(tmp_path, item)) is True
        assert fetcher.get_calls == [image_url("img2")]
        assert item.images_downloaded is True
        assert len(item.image_paths) == 3

    def test_bad_status_is_failure(self, tmp_path, make_item, diagnostics):
        """Test a non-200 response counts as a failed image."""
        url = image_url("a")
        fetcher = FakeFetcher(sizes={url: 10}, statuses={url: 503})
        item = make_item(["a"])

        assert run(ImageDownloader(fetcher, diagnostics=diagnostics).download_images(tmp_path, item)) is False
        assert item.image_paths == []
        assert diagnostics.reports[0][1]["errors"][0].status == 503

    def test_write_failure_is_failure(self, tmp_path, make_item):
        """Test a missing target directory fails the image without raising."""
        fetcher = make_fetcher(["a"])
        item = make_item(["a"])

        result = run(ImageDownloader(fetcher).download_images(tmp_path / "missing", item))

        assert result is False
        assert item.image_paths == []


class TestDownloadAll:
    """Image pass over several posts."""

    def test_all_succeed(self, tmp_path, make_item):
        """Test the pass reports success when every post is complete."""
        fetcher = make_fetcher(["a", "b"])
        items = [make_item(["a"]), make_item(["b"]), make_item([])]

        assert run(ImageDownloader(fetcher).download_all(tmp_path, items)) is True
        assert all(item.images_downloaded for item in items)

    def test_one_post_fails(self, tmp_path, make_item):
        """Test one failing post fails the pass while others complete."""
        fetcher = make_fetcher(["a", "b"], failing=[image_url("b")])
        items = [make_item(["a"]), make_item(["b"])]

        assert run(ImageDownloader(fetcher).download_all(tmp_path, items)) is False
        assert items[0].images_downloaded is True
        assert items[1].images_downloaded is False

    def test_posts_sharing_an_image(self, tmp_path, make_item):
        """Test two posts downloading the same image concurrently both succeed."""
        fetcher = make_fetcher(["same"], delay=0.01)
        items = [make_item(["same"], title="p0"), make_item(["same"], title="p1")]

        assert run(ImageDownloader(fetcher).download_all(tmp_path, items)) is True

        path = str(tmp_path / "same.jpg")
        assert [item.image_paths for item in items] == [[path], [path]]
        assert all(item.images_downloaded for item in items)
        assert (tmp_path / "same.jpg").read_bytes() == f"bytes of {image_url('same')}".encode()
        assert not list(tmp_path.glob("*.part"))
