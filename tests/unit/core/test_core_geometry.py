"""
지오메트리 연산 테스트
"""

import pytest
from shapely.geometry import GeometryCollection, LineString, MultiPolygon, Point, Polygon, box

from capchat.core.geometry import (
    CheapRuler,
    as_multipolygon,
    bounding_box,
    concave_hull,
    contains,
    intersection,
    intersects_or_within,
    polygons_of,
    union_all,
    valid_polygons,
)


class TestPolygonsOf:
    """폴리곤 평탄화 테스트"""

    def test_flattens_collections(self):
        """중첩 컬렉션에서 폴리곤만 추출"""
        gc = GeometryCollection([
            box(0, 0, 1, 1),
            Point(5, 5),
            GeometryCollection([MultiPolygon([box(2, 2, 3, 3), box(4, 4, 5, 5)]), LineString([(0, 0), (1, 1)])]),
        ])
        assert len(polygons_of(gc)) == 3

    def test_none_and_empty(self):
        """None/빈 지오메트리"""
        assert polygons_of(None) == []
        assert polygons_of(GeometryCollection()) == []


class TestSetOperations:
    """합집합/교집합/포함 테스트"""

    def test_union_overlapping(self):
        """겹치는 사각형 합집합"""
        u = union_all([box(0, 0, 2, 2), box(1, 1, 3, 3)])
        assert u.area == pytest.approx(7.0)

    def test_union_empty(self):
        """빈 입력은 빈 지오메트리"""
        assert union_all([]).is_empty

    def test_intersection_is_multipolygon(self):
        """교집합은 항상 MultiPolygon"""
        result = intersection(box(-5, -5, 5, 5), box(0, 0, 10, 10))
        assert isinstance(result, MultiPolygon)
        assert result.area == pytest.approx(25.0)

    def test_intersection_touching_edge_has_no_area(self):
        """변만 맞닿으면 폴리곤 부분 없음"""
        assert intersection(box(0, 0, 1, 1), box(1, 0, 2, 1)).is_empty

    def test_contains(self):
        """포함 관계 테스트"""
        assert contains(box(0, 0, 10, 10), box(1, 1, 2, 2))
        assert not contains(box(0, 0, 10, 10), box(9, 9, 11, 11))
        assert not contains(MultiPolygon(), box(0, 0, 1, 1))

    def test_intersects_or_within(self):
        """겹침/포함/분리 테스트"""
        region = box(0, 0, 10, 10)
        assert intersects_or_within(box(-5, -5, 5, 5), region)
        assert intersects_or_within(box(2, 2, 3, 3), region)
        assert not intersects_or_within(box(20, 20, 30, 30), region)


class TestHullAndBounds:
    """오목 껍질과 경계 상자 테스트"""

    def test_concave_hull_joins_pieces(self):
        """떨어진 조각을 하나의 폴리곤으로 감쌈"""
        pieces = union_all([box(0, 0, 1, 1), box(3, 0, 4, 1)])
        hull = concave_hull(pieces)
        assert hull.geom_type == "Polygon"
        assert hull.bounds == (0.0, 0.0, 4.0, 1.0)

    def test_concave_hull_of_square(self):
        """사각형 하나의 껍질은 같은 범위"""
        assert concave_hull(box(0, 0, 10, 10)).bounds == (0.0, 0.0, 10.0, 10.0)

    def test_bounding_box(self):
        """경계 상자 테스트"""
        assert bounding_box(as_multipolygon([box(0, 0, 1, 1), box(5, -2, 6, 3)])) == (0.0, -2.0, 6.0, 3.0)
        assert bounding_box(MultiPolygon()) is None
        assert bounding_box(None) is None


class TestCheapRuler:
    """cheap-ruler 근사 테스트"""

    def test_equator_degree(self):
        """적도에서 경도 1도는 약 111.32km"""
        ruler = CheapRuler(0.0)
        assert ruler.kx == pytest.approx(111.32, rel=1e-3)
        assert ruler.distance((0, 0), (1, 0)) == pytest.approx(ruler.kx)

    def test_longitude_shrinks_with_latitude(self):
        """위도가 높을수록 경도 1도 거리가 짧아짐"""
        assert CheapRuler(60.0).kx < CheapRuler(30.0).kx < CheapRuler(0.0).kx

    def test_destination_east(self):
        """동쪽으로 이동하면 위도 유지"""
        ruler = CheapRuler(-43.5)
        lon, lat = ruler.destination((172.5, -43.5), 10.0, 90.0)
        assert lat == pytest.approx(-43.5)
        assert lon > 172.5
        assert ruler.distance((172.5, -43.5), (lon, lat)) == pytest.approx(10.0)


class TestValidPolygons:
    """잘못된 폴리곤 보정 테스트"""

    def test_bow_tie_split(self):
        """자기 교차 폴리곤은 두 삼각형으로 보정"""
        bow_tie = Polygon([(-5, -5), (5, 5), (5, -5), (-5, 5), (-5, -5)])
        assert not bow_tie.is_valid

        fixed = valid_polygons([bow_tie])
        assert len(fixed) == 2
        assert all(p.is_valid for p in fixed)
        assert sum(p.area for p in fixed) == pytest.approx(50.0)

    def test_valid_untouched(self):
        """유효한 폴리곤은 그대로, 빈 폴리곤은 제외"""
        square = box(0, 0, 1, 1)
        assert valid_polygons([square, Polygon()]) == [square]
