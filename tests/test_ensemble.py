"""Integration tests for forte_ed.ensemble — building and submitting a run."""

import datetime as dt

import pytest

from forte_ed.config import default_config
from forte_ed.ensemble import run_ed_ensemble, run_ensemble
from forte_ed.errors import (
    ConnectionFailure,
    ExternalServiceFailure,
    InvalidArgument,
    IOFailure,
)
from forte_ed.platform import PecanPlatform
from forte_ed.types import EnsembleRun, RunParameters

REQUIRED_SECTIONS = ('workflow', 'database', 'pft', 'run', 'model', 'ensemble')


class TestRunEdEnsemble:
    def test_end_to_end(self, stub_platform, soil_csv):
        run = run_ed_ensemble("2000-06-01", "2020-12-31", ensemble_size=5,
                              platform=stub_platform, soil_path=soil_csv)
        assert isinstance(run, EnsembleRun)
        assert run.workflow_id == stub_platform.workflow_id
        for section in REQUIRED_SECTIONS:
            assert section in run.settings
        assert stub_platform.submitted == run.settings

    def test_call_sequence(self, stub_platform, soil_csv):
        run_ed_ensemble("2000-06-01", "2020-12-31", platform=stub_platform, soil_path=soil_csv)
        assert [c[0] for c in stub_platform.calls] == ['lookup_model', 'insert_workflow', 'submit']
        assert stub_platform.calls[0][1:] == ("ED2-experimental", "experimental")

    def test_workflow_insert_arguments(self, stub_platform, soil_csv):
        run_ed_ensemble("2000-06-01", "2020-12-31", platform=stub_platform,
                        soil_path=soil_csv, n_limit_soil=True)
        _, site_id, model_id, start, end, notes = stub_platform.calls[1]
        assert site_id == 1000000033
        assert model_id == stub_platform.model_id
        assert start == dt.date(2000, 6, 1)
        assert end == dt.date(2020, 12, 31)
        assert notes.startswith("==FoRTE run==\n")
        assert "n_limit_soil : TRUE" in notes

    def test_settings_content(self, stub_platform, soil_csv):
        run = run_ed_ensemble("2000-06-01", "2020-12-31", ensemble_size=20,
                              pft_type="Standard", platform=stub_platform,
                              soil_path=soil_csv, multiple_scatter=True, nowait=False)
        s = run.settings
        assert s['workflow'] == {'id': stub_platform.workflow_id, 'nowait': False}
        assert s['ensemble']['size'] == 20
        assert s['pft'][0]['name'] == "temperate.Early_Hardwood"
        assert s['model']['id'] == stub_platform.model_id
        tags = s['model']['ed2in_tags']
        assert tags['ICANRAD'] == 1
        assert tags['NZG'] == 2
        assert tags['SLZ'] == "-30,-10"
        assert tags['SLMSTR'] == "0.3,0.2"
        assert s['outdir'] == f"/data/workflows/PEcAn_{stub_platform.workflow_id}"

    def test_configured_soil_path(self, stub_platform, soil_csv):
        config = default_config()
        config.paths.project_root = str(soil_csv.parent)
        config.paths.soil_moisture = soil_csv.name
        run = run_ed_ensemble("2000-06-01", "2020-12-31", platform=stub_platform, config=config)
        assert run.settings['model']['ed2in_tags']['NZG'] == 2

    def test_configured_model_queue(self, stub_platform, soil_csv):
        config = default_config()
        config.rabbitmq.model_queue = "ED2_custom"
        run = run_ed_ensemble("2000-06-01", "2020-12-31", platform=stub_platform,
                              config=config, soil_path=soil_csv)
        assert run.settings['host']['rabbitmq']['queue'] == "ED2_custom"
        assert stub_platform.submitted['host']['rabbitmq']['queue'] == "ED2_custom"


class TestFailFast:
    @pytest.mark.parametrize("bad", ["temperate", "boreal", ""])
    def test_invalid_pft_type_no_calls(self, stub_platform, soil_csv, bad):
        with pytest.raises(InvalidArgument):
            run_ed_ensemble("2000-06-01", "2020-12-31", pft_type=bad,
                            platform=stub_platform, soil_path=soil_csv)
        assert not stub_platform.touched

    def test_invalid_ensemble_size_no_calls(self, stub_platform, soil_csv):
        with pytest.raises(InvalidArgument):
            run_ed_ensemble("2000-06-01", "2020-12-31", ensemble_size=0,
                            platform=stub_platform, soil_path=soil_csv)
        assert not stub_platform.touched

    def test_missing_soil_data_no_calls(self, stub_platform, tmp_path):
        with pytest.raises(IOFailure):
            run_ed_ensemble("2000-06-01", "2020-12-31", platform=stub_platform,
                            soil_path=tmp_path / "missing.csv")
        assert not stub_platform.touched

    def test_empty_soil_data_no_calls(self, stub_platform, make_soil_csv):
        with pytest.raises(IOFailure):
            run_ed_ensemble("2000-06-01", "2020-12-31", platform=stub_platform,
                            soil_path=make_soil_csv([]))
        assert not stub_platform.touched

    def test_invalid_pft_does_not_connect(self, monkeypatch, soil_csv):
        def _connect(*args, **kwargs):
            raise AssertionError("connection attempted")
        monkeypatch.setattr(PecanPlatform, "connect", classmethod(_connect))
        with pytest.raises(InvalidArgument):
            run_ed_ensemble("2000-06-01", "2020-12-31", pft_type="bad", soil_path=soil_csv)

    def test_connection_failure_propagates(self, monkeypatch, soil_csv):
        def _connect(cls, config=None):
            raise ConnectionFailure("database unreachable")
        monkeypatch.setattr(PecanPlatform, "connect", classmethod(_connect))
        with pytest.raises(ConnectionFailure):
            run_ed_ensemble("2000-06-01", "2020-12-31", soil_path=soil_csv)

    def test_default_platform_created_when_none(self, monkeypatch, stub_platform, soil_csv):
        monkeypatch.setattr(PecanPlatform, "connect",
                            classmethod(lambda cls, config=None: stub_platform))
        run = run_ed_ensemble("2000-06-01", "2020-12-31", soil_path=soil_csv)
        assert run.workflow_id == stub_platform.workflow_id


class TestPlatformFailures:
    def test_lookup_failure_stops_before_insert(self, make_platform, soil_csv):
        platform = make_platform(fail_on='lookup_model')
        with pytest.raises(ExternalServiceFailure):
            run_ed_ensemble("2000-06-01", "2020-12-31", platform=platform, soil_path=soil_csv)
        assert [c[0] for c in platform.calls] == ['lookup_model']

    def test_submit_failure_leaves_workflow(self, make_platform, soil_csv):
        platform = make_platform(fail_on='submit')
        with pytest.raises(ExternalServiceFailure):
            run_ed_ensemble("2000-06-01", "2020-12-31", platform=platform, soil_path=soil_csv)
        # no rollback: the workflow was inserted and nothing undid it
        assert [c[0] for c in platform.calls] == ['lookup_model', 'insert_workflow', 'submit']


class TestRunEnsemble:
    def test_with_parameters_object(self, stub_platform, soil_csv):
        params = RunParameters(dt.date(2000, 6, 1), dt.date(2001, 6, 1), trait_plasticity=True)
        run = run_ensemble(params, platform=stub_platform, soil_path=soil_csv)
        assert run.settings['model']['ed2in_tags']['TRAIT_PLASTICITY_SCHEME'] == 1
        assert run.settings['run']['end.date'] == "2001-06-01"
