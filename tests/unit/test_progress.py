from __future__ import annotations

from unittest.mock import Mock, patch

from mi_matcher.services.progress import ProgressTracker, is_tty_enabled


def test_is_tty_enabled_returns_stdout_isatty():
    with patch("sys.stdout.isatty", return_value=True):
        assert is_tty_enabled() is True

    with patch("sys.stdout.isatty", return_value=False):
        assert is_tty_enabled() is False


class TestProgressTracker:
    def test_init_with_tty_enabled(self):
        with patch("mi_matcher.services.progress.is_tty_enabled", return_value=True), \
             patch("mi_matcher.services.progress.tqdm") as mock_tqdm:

            tracker = ProgressTracker(5, description="Reading billing files")

            assert tracker.total == 5
            assert tracker.current == 0
            assert tracker.enabled is True
            mock_tqdm.assert_called_once_with(
                total=5,
                desc="Reading billing files",
                unit="file",
                disable=False,
                leave=True,
                position=0,
                ncols=80,
                ascii=True,
            )

    def test_init_with_tty_disabled(self):
        with patch("mi_matcher.services.progress.is_tty_enabled", return_value=False):
            tracker = ProgressTracker(5)
            assert tracker.enabled is False
            assert tracker.pbar is None
            # 無効時も例外なく呼べる
            tracker.advance("a.xlsx")
            tracker.set_postfix(loaded=1)
            tracker.close()
            assert tracker.current == 1

    def test_advance_updates_bar(self):
        mock_pbar = Mock()
        with patch("mi_matcher.services.progress.is_tty_enabled", return_value=True), \
             patch("mi_matcher.services.progress.tqdm", return_value=mock_pbar):
            tracker = ProgressTracker(2, description="Reading")
            tracker.advance("a.xlsx")
            mock_pbar.set_description.assert_called_with("Reading (a.xlsx)")
            mock_pbar.update.assert_called_once_with(1)
            tracker.set_postfix(loaded=1, failed=0)
            mock_pbar.set_postfix.assert_called_once_with(loaded=1, failed=0)

    def test_close_is_idempotent(self):
        mock_pbar = Mock()
        with patch("mi_matcher.services.progress.is_tty_enabled", return_value=True), \
             patch("mi_matcher.services.progress.tqdm", return_value=mock_pbar):
            tracker = ProgressTracker(1)
            tracker.advance()
            tracker.close()
            tracker.close()
            mock_pbar.close.assert_called_once()
            assert tracker.pbar is None
