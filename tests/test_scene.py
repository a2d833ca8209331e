import pytest

from helpers import make_scene

from LocalBundleAdjustment.config import LocalBAConfig


@pytest.fixture
def scene():
    # Views 1 and 2 share pose 10; view 3 is not posed yet
    return make_scene(
        {1: (10, 0), 2: (10, 1), 3: (None, 0), 4: (11, 0)},
        landmarks={100: {1, 4}, 101: {3, 4}, 102: {3}},
        focal_lengths={0: 1000.0, 1: 1200.0},
    )


def test_posed_views_and_poses(scene):
    assert scene.posed_view_ids() == {1, 2, 4}
    assert scene.pose_of_view() == {1: 10, 2: 10, 4: 11}
    assert scene.pose_ids() == {10, 11}


def test_grouping_by_intrinsic(scene):
    assert scene.views_by_intrinsic() == {0: {1, 4}, 1: {2}}
    assert scene.poses_by_intrinsic() == {0: {10, 11}, 1: {10}}


def test_tracks_and_observers(scene):
    assert scene.tracks_per_view() == {1: {100}, 3: {101, 102}, 4: {100, 101}}
    assert scene.observing_poses_by_landmark() == {100: {10, 11}, 101: {11}, 102: set()}


def test_config_overrides_and_validation():
    config = LocalBAConfig(refined_distance_limit=3, constant_distance_limit=5)
    assert config.REFINED_DISTANCE_LIMIT == 3
    assert config.to_dict()['constant_distance_limit'] == 5
    # Class defaults untouched
    assert LocalBAConfig.REFINED_DISTANCE_LIMIT == 1

    with pytest.raises(ValueError):
        LocalBAConfig(unknown_option=1)
    with pytest.raises(ValueError):
        LocalBAConfig(refined_distance_limit=3, constant_distance_limit=2)
    with pytest.raises(ValueError):
        LocalBAConfig(intrinsics_window_size=0)
    with pytest.raises(ValueError):
        LocalBAConfig(intrinsics_stdev_percentage_limit=0.0)
