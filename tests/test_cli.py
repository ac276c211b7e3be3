import pytest

from tsp_eras import cli
from tsp_eras.data import DataFormatError


SQUARE_POINTS = "A|0|0\nB|1|0\nC|1|1\nD|0|1\n"


@pytest.fixture(autouse=True)
def workdir(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    return tmp_path


def test_coordinate_run_reports_each_era_and_tour(workdir, capsys):
    (workdir / "square.txt").write_text(SQUARE_POINTS)
    cli.main(["square.txt", "-c", "-w", "2", "-e", "4", "-g", "5", "-p", "8", "--seed", "7"])
    out = capsys.readouterr().out
    for era in range(1, 5):
        assert f"Best of Era {era}/4 has " in out
    assert "Best of Era 4/4 has 4.0" in out
    tour_line = [line for line in out.splitlines() if " --> " in line][-1]
    assert sorted(tour_line.split(" --> ")) == ["A", "B", "C", "D"]


def test_distance_table_is_written(workdir, capsys):
    (workdir / "square.txt").write_text(SQUARE_POINTS)
    cli.main(["square.txt", "dist.txt", "-c", "-w", "1", "-e", "1", "-g", "1", "-p", "4"])
    lines = (workdir / "dist.txt").read_text().splitlines()
    assert len(lines) == 16
    assert "A\t|B\t|1.0" in lines


def test_population_of_two_exits_with_error(workdir, capsys):
    (workdir / "square.txt").write_text(SQUARE_POINTS)
    with pytest.raises(SystemExit) as exc:
        cli.main(["square.txt", "-c", "-p", "2"])
    assert exc.value.code == 2
    assert "population_size=2" in capsys.readouterr().err


def test_missing_input_path_exits_with_error(workdir, capsys):
    with pytest.raises(SystemExit) as exc:
        cli.main([])
    assert exc.value.code == 2
    assert "no input path" in capsys.readouterr().err


def test_default_config_file_is_used_and_overridden(workdir, capsys):
    (workdir / "square.txt").write_text(SQUARE_POINTS)
    (workdir / "default_config.txt").write_text(
        "eras: 2\ngenerations: 3\npopulation: 6\nworker_threads: 1\n"
        "in_path: square.txt\nin_mode: CoordMode\nunknown: 1\n"
    )
    cli.main(["-e", "3"])
    out = capsys.readouterr().out
    assert "default_config.txt found!" in out
    assert "Best of Era 3/3 has " in out


def test_load_config_file(tmp_path):
    path = tmp_path / "cfg.txt"
    path.write_text("eras: 5\nmutation_rate: 0.5\nin_path: C:/data/x.txt\n\n")
    assert cli.load_config_file(path) == {"eras": 5, "mutation_rate": 0.5, "in_path": "C:/data/x.txt"}


@pytest.mark.parametrize("text", ["eras 5\n", "eras: five\n", "in_mode: Other\n"])
def test_load_config_file_rejects_malformed(tmp_path, text):
    path = tmp_path / "cfg.txt"
    path.write_text(text)
    with pytest.raises(DataFormatError):
        cli.load_config_file(path)


def test_explicit_missing_config_exits_with_error(workdir):
    with pytest.raises(SystemExit) as exc:
        cli.main(["x.txt", "--config", "nope.txt"])
    assert exc.value.code == 2


def test_tsplib_run_reports_gap(workdir, capsys):
    (workdir / "tri.tsp").write_text(
        "NAME: tri\nTYPE: TSP\nDIMENSION: 4\nEDGE_WEIGHT_TYPE: EUC_2D\n"
        "NODE_COORD_SECTION\n1 0 0\n2 10 0\n3 10 10\n4 0 10\nEOF\n"
    )
    (workdir / "tri.opt.tour").write_text("NAME: tri.opt.tour\nTYPE: TOUR\nDIMENSION: 4\nTOUR_SECTION\n1\n2\n3\n4\n-1\nEOF\n")
    cli.main(["tri.tsp", "--tsplib", "-w", "2", "-e", "4", "-g", "5", "-p", "8", "--seed", "1"])
    out = capsys.readouterr().out
    assert "optimum=40.00 gap=0.0000" in out


def test_empty_input_exits_with_error(workdir, capsys):
    (workdir / "empty.txt").write_text("")
    with pytest.raises(SystemExit) as exc:
        cli.main(["empty.txt", "-w", "1", "-e", "1", "-g", "1", "-p", "4"])
    assert exc.value.code == 2
    assert "no cities found" in capsys.readouterr().err
