from __future__ import annotations

from armada_mcp.songs import generate_song_structure


def test_song_structure_for_known_corridor():
    song = generate_song_structure("jamaica", "grief", bpm=90, genre="reggae")
    assert [s.type for s in song.sections] == ["intro", "verse", "chorus"]
    assert song.sections[1].delivery == "sustained"
    assert "Jamaica" in song.sections[1].lyrics
    assert song.metadata.bpm == 90
    assert song.metadata.genre == "reggae"

    wire = song.to_wire()
    assert wire["metadata"]["emotionalState"] == "grief"
    assert wire["sections"][0]["armScore"] == 0.82


def test_song_structure_tolerates_unknown_inputs():
    song = generate_song_structure("atlantis", None)
    assert song.title == "Atlantis Unknown"
    assert song.sections[1].delivery == "narrative"
    assert song.metadata.genre == "auto-detected"
