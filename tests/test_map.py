from __future__ import annotations

from dataclasses import replace

import networkx as nx
import pytest

from conftest import make_permits, make_routes
from permit_engine.core.errors import ErrorKind, GameError
from permit_engine.map import GameMap
from permit_engine.models import City, Color


def write_csv(path, header, rows):
    path.write_text("\n".join([header] + rows) + "\n", encoding="utf-8")
    return path


def rejected(routes=None, permits=None):
    with pytest.raises(GameError) as info:
        GameMap.build(routes if routes is not None else make_routes(), permits if permits is not None else make_permits())
    assert info.value.kind is ErrorKind.INVALID_CATALOG


class TestStandardMap:
    def test_sizes(self):
        game_map = GameMap.standard()
        assert len(game_map.routes) == 97
        assert len(game_map.permits) == 30
        cities = {city for route in game_map.routes for city in route.cities}
        assert cities == set(City)

    def test_double_routes_pair_up(self):
        game_map = GameMap.standard()
        for route in game_map.routes:
            if route.double_route_partner_id is not None:
                partner = game_map.route(route.double_route_partner_id)
                assert partner.double_route_partner_id == route.id
                assert set(partner.cities) == set(route.cities)

    def test_graph(self):
        graph = GameMap.standard().get_graph()
        assert isinstance(graph, nx.MultiGraph)
        assert graph.number_of_edges() == 97
        assert graph.number_of_nodes() == 36
        assert nx.is_connected(graph)


class TestLoad:
    def test_load_csv(self, tmp_path):
        routes = write_csv(
            tmp_path / "routes.csv",
            "Id, From, To, Distance, Color, Double",
            ["1, denver, omaha, 4, purple, 2", "2, denver, omaha, 4, black, 1", "3, omaha, chicago, 4, blue,"],
        )
        permits = write_csv(tmp_path / "permits.csv", "Id,From,To,Points", ["1,denver,chicago,8"])
        game_map = GameMap.load(routes, permits)
        assert [route.id for route in game_map.routes] == [1, 2, 3]
        assert game_map.route(1).color is Color.PURPLE
        assert game_map.route(1).double_route_partner_id == 2
        assert game_map.route(3).double_route_partner_id is None
        assert game_map.permits[0].city2 is City.CHICAGO
        assert game_map.route(4) is None

    def test_unknown_city(self, tmp_path):
        routes = write_csv(tmp_path / "routes.csv", "Id,From,To,Distance,Color,Double", ["1,denver,gotham,4,red,"])
        permits = write_csv(tmp_path / "permits.csv", "Id,From,To,Points", [])
        with pytest.raises(GameError) as info:
            GameMap.load(routes, permits)
        assert info.value.kind is ErrorKind.INVALID_CATALOG

    def test_missing_column(self, tmp_path):
        routes = write_csv(tmp_path / "routes.csv", "Id,From,To,Distance", ["1,denver,omaha,4"])
        permits = write_csv(tmp_path / "permits.csv", "Id,From,To,Points", [])
        with pytest.raises(GameError) as info:
            GameMap.load(routes, permits)
        assert info.value.kind is ErrorKind.INVALID_CATALOG

    def test_wild_route_color(self, tmp_path):
        routes = write_csv(tmp_path / "routes.csv", "Id,From,To,Distance,Color,Double", ["1,denver,omaha,4,wild,"])
        permits = write_csv(tmp_path / "permits.csv", "Id,From,To,Points", [])
        with pytest.raises(GameError) as info:
            GameMap.load(routes, permits)
        assert info.value.kind is ErrorKind.INVALID_CATALOG


class TestValidation:
    def test_toy_map_is_valid(self, toy_map):
        assert len(toy_map.routes) == 6

    def test_duplicate_route_id(self):
        routes = make_routes()
        rejected(routes=routes + [replace(routes[0], double_route_partner_id=None)])

    def test_self_loop(self):
        routes = make_routes()
        routes[0] = replace(routes[0], city2=City.VANCOUVER)
        rejected(routes=routes)

    def test_zero_length(self):
        routes = make_routes()
        routes[0] = replace(routes[0], length=0)
        rejected(routes=routes)

    def test_wild_route(self):
        routes = make_routes()
        routes[0] = replace(routes[0], color=Color.WILD)
        rejected(routes=routes)

    def test_already_claimed(self):
        routes = make_routes()
        routes[0] = replace(routes[0], claimed_by="alice")
        rejected(routes=routes)

    def test_one_sided_partner(self):
        routes = make_routes()
        routes[5] = replace(routes[5], double_route_partner_id=None)
        rejected(routes=routes)

    def test_partner_on_other_cities(self):
        routes = make_routes()
        routes[0] = replace(routes[0], double_route_partner_id=2)
        routes[1] = replace(routes[1], double_route_partner_id=1)
        rejected(routes=routes)

    def test_duplicate_permit(self):
        permits = make_permits()
        rejected(permits=permits + [permits[0]])
