import pytest

from anthem.domain.users import codec, patch
from anthem.domain.users.attributes import NumberAttr, StringAttr
from anthem.domain.users.models import Album, Artist, MusicProvider, Track, UserUpdate


def _track() -> Track:
    return Track(
        uri="spotify:track:1",
        name="Anthem",
        artists=[Artist(uri="spotify:artist:1", name="One"), Artist(uri="spotify:artist:2", name="Two")],
        album=Album(uri="spotify:album:1", cover_url="https://img.example/a.jpg"),
    )


def test_empty_patch_removes_every_field():
    compiled = patch.compile_patch(UserUpdate())

    assert compiled.set_clauses == ()
    assert compiled.remove_clauses == ("Nickname", "PictureUrl", "Bio", "Anthem")
    assert dict(compiled.values) == {}
    assert compiled.expression == "REMOVE Nickname, PictureUrl, Bio, Anthem"


def test_mixed_patch():
    compiled = patch.compile_patch(UserUpdate(nickname="Sam", picture_url=None, bio="hi", anthem=None))

    assert compiled.expression == "SET Nickname = :nickname, Bio = :bio REMOVE PictureUrl, Anthem"
    assert dict(compiled.values) == {":nickname": StringAttr("Sam"), ":bio": StringAttr("hi")}


def test_full_patch_is_set_only():
    track = _track()
    compiled = patch.compile_patch(
        UserUpdate(nickname="Sam", picture_url="https://img.example/p.png", bio="", anthem=track)
    )

    assert compiled.remove_clauses == ()
    assert compiled.expression == (
        "SET Nickname = :nickname, PictureUrl = :pictureUrl, Bio = :bio, Anthem = :anthem"
    )
    assert compiled.values[":bio"] == StringAttr("")
    assert compiled.values[":anthem"] == codec.encode_track(track)


@pytest.mark.parametrize(
    "kwargs",
    [
        {"anthem": _track(), "bio": "b", "picture_url": "p", "nickname": "n"},
        {"nickname": "n", "picture_url": "p", "bio": "b", "anthem": _track()},
        {"bio": "b", "nickname": "n", "anthem": _track(), "picture_url": "p"},
    ],
)
def test_clause_order_is_fixed(kwargs):
    compiled = patch.compile_patch(UserUpdate(**kwargs))

    assert [clause.split(" = ")[0] for clause in compiled.set_clauses] == ["Nickname", "PictureUrl", "Bio", "Anthem"]


def test_remove_order_is_fixed():
    compiled = patch.compile_patch(UserUpdate(bio="b"))

    assert compiled.expression == "SET Bio = :bio REMOVE Nickname, PictureUrl, Anthem"


def test_empty_string_is_a_value_not_a_removal():
    compiled = patch.compile_patch(UserUpdate(nickname=""))

    assert "Nickname" not in compiled.remove_clauses
    assert compiled.values[":nickname"] == StringAttr("")


def test_field_table_drives_compilation():
    table = (patch.PatchField("Bio", ":about", "bio", codec.encode_string),)

    compiled = patch.compile_fields(UserUpdate(bio="x"), table)

    assert compiled.expression == "SET Bio = :about"
    assert dict(compiled.values) == {":about": StringAttr("x")}


def test_music_provider_patch():
    compiled = patch.compile_music_provider(MusicProvider.APPLE_MUSIC)

    assert compiled.expression == "SET MusicProvider = :musicProvider"
    assert dict(compiled.values) == {":musicProvider": NumberAttr("1")}
