import unittest

from playback import PlayerNotFoundError, detect_player, select_player
from playback.players import player_program_names


def _which_from(installed):
    def which(name):
        return f"/usr/bin/{name}" if name in installed else None

    return which


class DetectPlayerTests(unittest.TestCase):
    def test_darwin_uses_afplay(self) -> None:
        player = detect_player(platform="darwin", which=_which_from({"afplay", "ffplay"}))
        self.assertEqual("afplay", player.name)
        self.assertEqual(["afplay", "/tmp/a.mp3"], player.argv_for("/tmp/a.mp3"))

    def test_linux_prefers_ffplay_then_mpg123_then_sox(self) -> None:
        cases = [
            ({"ffplay", "mpg123", "play"}, "ffplay"),
            ({"mpg123", "play"}, "mpg123"),
            ({"play"}, "play"),
        ]
        for installed, expected in cases:
            with self.subTest(installed=sorted(installed)):
                player = detect_player(platform="linux", which=_which_from(installed))
                self.assertEqual(expected, player.name)

    def test_ffplay_runs_quietly_without_display(self) -> None:
        player = detect_player(platform="linux", which=_which_from({"ffplay"}))
        self.assertEqual(
            ["ffplay", "-v", "0", "-nodisp", "-autoexit", "/music/w/a.mp3"],
            player.argv_for("/music/w/a.mp3"),
        )

    def test_no_player_installed_raises(self) -> None:
        with self.assertRaisesRegex(PlayerNotFoundError, "mpg123 or sox"):
            detect_player(platform="linux", which=_which_from(set()))

    def test_afplay_is_ignored_off_darwin(self) -> None:
        with self.assertRaises(PlayerNotFoundError):
            detect_player(platform="linux", which=_which_from({"afplay"}))


class SelectPlayerTests(unittest.TestCase):
    def test_empty_name_falls_back_to_detection(self) -> None:
        player = select_player("", platform="linux", which=_which_from({"mpg123"}))
        self.assertEqual("mpg123", player.name)

    def test_known_name_keeps_stock_flags(self) -> None:
        player = select_player("mpg123", which=_which_from({"mpg123"}))
        self.assertEqual(("mpg123", "-q"), player.command)

    def test_custom_player_gets_configured_args(self) -> None:
        player = select_player(
            "/opt/bin/mpv",
            ["--no-video"],
            which=lambda name: name,
        )
        self.assertEqual("mpv", player.name)
        self.assertEqual(["/opt/bin/mpv", "--no-video", "/m/a.mp3"], player.argv_for("/m/a.mp3"))

    def test_configured_player_must_exist(self) -> None:
        with self.assertRaisesRegex(PlayerNotFoundError, "mpv"):
            select_player("mpv", which=_which_from(set()))

    def test_program_names_include_custom_player(self) -> None:
        player = select_player("/opt/bin/mpv", which=lambda name: name)
        names = player_program_names(player)

        self.assertIn("mpv", names)
        self.assertIn("ffplay", names)
        self.assertIn("afplay", names)


if __name__ == "__main__":
    unittest.main()
