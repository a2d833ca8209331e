"""
Scene snapshot consumed by the local BA scheduler.

The host pipeline builds one snapshot per registration batch. The scheduler
only reads it; poses, intrinsics and landmark positions stay owned by the
pipeline.
"""

from collections import defaultdict
from dataclasses import dataclass, field
from typing import Dict, Optional, Set


@dataclass
class View:
    """Registered image with its (optional) pose and intrinsic"""
    view_id: int
    pose_id: Optional[int] = None
    intrinsic_id: Optional[int] = None

    @property
    def is_posed(self) -> bool:
        return self.pose_id is not None


@dataclass
class SceneSnapshot:
    """
    Read-only view of the reconstruction at the start of a cycle.

    Attributes:
        views: view id -> View
        focal_lengths: intrinsic id -> current focal length (pixels)
        landmarks: landmark id -> ids of the views observing it
    """
    views: Dict[int, View] = field(default_factory=dict)
    focal_lengths: Dict[int, float] = field(default_factory=dict)
    landmarks: Dict[int, Set[int]] = field(default_factory=dict)

    def add_view(self, view_id: int, pose_id: Optional[int] = None,
                 intrinsic_id: Optional[int] = None) -> View:
        view = View(view_id, pose_id, intrinsic_id)
        self.views[view_id] = view
        return view

    def add_landmark(self, landmark_id: int, observing_views):
        self.landmarks[landmark_id] = set(observing_views)

    def posed_view_ids(self) -> Set[int]:
        return {vid for vid, view in self.views.items() if view.is_posed}

    def pose_of_view(self) -> Dict[int, int]:
        """view id -> pose id, posed views only"""
        return {vid: view.pose_id for vid, view in self.views.items() if view.is_posed}

    def pose_ids(self) -> Set[int]:
        return set(self.pose_of_view().values())

    def tracks_per_view(self) -> Dict[int, Set[int]]:
        """view id -> ids of the landmarks it observes"""
        tracks = defaultdict(set)
        for landmark_id, view_ids in self.landmarks.items():
            for view_id in view_ids:
                tracks[view_id].add(landmark_id)
        return dict(tracks)

    def views_by_intrinsic(self) -> Dict[int, Set[int]]:
        """intrinsic id -> posed views using it"""
        grouped = defaultdict(set)
        for vid, view in self.views.items():
            if view.is_posed and view.intrinsic_id is not None:
                grouped[view.intrinsic_id].add(vid)
        return dict(grouped)

    def poses_by_intrinsic(self) -> Dict[int, Set[int]]:
        """intrinsic id -> poses whose views use it"""
        grouped = defaultdict(set)
        for view in self.views.values():
            if view.is_posed and view.intrinsic_id is not None:
                grouped[view.intrinsic_id].add(view.pose_id)
        return dict(grouped)

    def observing_poses_by_landmark(self) -> Dict[int, Set[int]]:
        """landmark id -> poses observing it (unposed observations dropped)"""
        pose_of_view = self.pose_of_view()
        return {
            landmark_id: {pose_of_view[v] for v in view_ids if v in pose_of_view}
            for landmark_id, view_ids in self.landmarks.items()
        }

    def summary(self) -> str:
        return (f"SceneSnapshot: {len(self.views)} views "
                f"({len(self.posed_view_ids())} posed), "
                f"{len(self.focal_lengths)} intrinsics, "
                f"{len(self.landmarks)} landmarks")
