from gasbench.main import load_plan, main, parse_args


class TestLoadPlan:
    def test_cli_overrides(self):
        plan = load_plan(parse_args(["--max-assets", "4", "--repeat", "1", "--enable-claiming"]))
        assert plan.max_assets == 4
        assert plan.repeat_count == 1
        assert plan.is_enabled("claiming")
        assert plan.is_enabled("exchanging")

    def test_plan_file(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text('{"max_assets": 2, "enabled_categories": ["minting"]}')
        plan = load_plan(parse_args(["--plan-path", str(path), "--no-preconditions"]))
        assert plan.max_assets == 2
        assert not plan.is_enabled("burning")
        assert plan.check_preconditions is False


class TestMain:
    def test_dry_run_prints_plan(self, capsys, tmp_path):
        assert main(["--dry-run", "--max-assets", "2", "--output-dir", str(tmp_path)]) == 0
        out = capsys.readouterr().out
        assert "level 1: 1 synth(s)" in out
        assert "level 2: 2 synth(s), exchanging sUSD<->s1" in out
        assert "claiming: disabled" in out

    def test_missing_manifest_aborts(self, tmp_path):
        code = main(
            [
                "--deployment-path",
                str(tmp_path / "missing"),
                "--output-dir",
                str(tmp_path / "out"),
                "--no-charts",
            ]
        )
        assert code == 1

    def test_invalid_plan(self, tmp_path):
        path = tmp_path / "plan.json"
        path.write_text('{"max_assets": 0}')
        assert main(["--plan-path", str(path), "--dry-run"]) == 2

    def test_stale_results_removed_before_manifest_load(self, tmp_path):
        output_dir = tmp_path / "out"
        output_dir.mkdir()
        stale = output_dir / "measurements.json"
        stale.write_text('{"1_synths": {}}')

        code = main(
            [
                "--deployment-path",
                str(tmp_path / "missing"),
                "--output-dir",
                str(output_dir),
                "--no-charts",
            ]
        )

        assert code == 1
        assert not stale.exists()
