"""Tests for the Laravel routes viewer."""

from __future__ import annotations

import json

from overviewgen.models import ProjectType, Route
from overviewgen.process import SubprocessFailure
from overviewgen.viewers import LaravelRoutesViewer, ViewerContext
from overviewgen.viewers.laravel.routes import ROUTE_LIST_COMMAND, parse_route_file, parse_route_list
from tests._fixtures.project_builder import FakeRunner, ProjectBuilder

WEB_ROUTES = """<?php

use App\\Http\\Controllers\\PostController;
use Illuminate\\Support\\Facades\\Route;

Route::get('/', function () {
    return view('welcome');
});

// Route::get('/disabled', [PostController::class, 'hidden']);
Route::get('/posts/{post}', [PostController::class, 'show'])->name('posts.show');
Route::match(['get', 'post'], '/search', 'SearchController@handle');
Route::resource('photos', PhotoController::class)->only(['index', 'show']);
"""


def _laravel_type() -> ProjectType:
    project_type = ProjectType()
    project_type.add_trait("php")
    project_type.add_trait("laravel")
    return project_type


def test_parse_route_file_in_source_order() -> None:
    routes = parse_route_file(WEB_ROUTES)

    assert routes == [
        Route(verb="GET|HEAD", path="/", action="Closure", name=""),
        Route(verb="GET|HEAD", path="posts/{post}", action="PostController@show", name="posts.show"),
        Route(verb="GET|POST", path="search", action="SearchController@handle", name=""),
        Route(verb="GET|HEAD", path="photos", action="PhotoController@index", name="photos.index"),
        Route(verb="GET|HEAD", path="photos/{photo}", action="PhotoController@show", name="photos.show"),
    ]


def test_api_resource_under_api_prefix() -> None:
    routes = parse_route_file("<?php Route::apiResource('users', UserController::class);", prefix="api")

    assert [(route.verb, route.path) for route in routes] == [
        ("GET|HEAD", "api/users"),
        ("POST", "api/users"),
        ("GET|HEAD", "api/users/{user}"),
        ("PUT|PATCH", "api/users/{user}"),
        ("DELETE", "api/users/{user}"),
    ]


def test_parse_route_list_strips_controller_namespace() -> None:
    output = json.dumps(
        [
            {
                "method": "GET|HEAD",
                "uri": "api/users",
                "name": "users.index",
                "action": "App\\Http\\Controllers\\UserController@index",
            },
            {"method": "GET|HEAD", "uri": "/", "name": None, "action": "Closure"},
        ]
    )

    routes = parse_route_list(output)

    assert routes is not None
    assert routes[0].action == "UserController@index"
    assert routes[1].name == ""
    assert parse_route_list("Error: no database") is None


def test_viewer_uses_artisan_when_available(project_builder: ProjectBuilder) -> None:
    project_builder.laravel()
    root = project_builder.path()
    runner = FakeRunner(
        {
            ROUTE_LIST_COMMAND: json.dumps(
                [
                    {"method": "GET|HEAD", "uri": "api/users", "name": "users.index", "action": "UserController@index"},
                    {"method": "GET|HEAD", "uri": "dashboard", "name": "dashboard", "action": "Closure"},
                ]
            )
        }
    )
    viewer = LaravelRoutesViewer(ViewerContext(project_type=_laravel_type(), runner=runner))

    output = viewer.generate(root)

    assert runner.calls == [ROUTE_LIST_COMMAND]
    assert output.startswith("# Laravel Routes\n\n## API Routes\n\n")
    assert "| GET\\|HEAD | api/users | UserController@index | users.index |" in output
    assert output.index("## API Routes") < output.index("## Web Routes")
    assert "Could not retrieve routes" not in output


def test_viewer_falls_back_to_route_files(project_builder: ProjectBuilder, fake_runner: FakeRunner) -> None:
    project_builder.laravel()
    project_builder.write(
        {
            "routes/web.php": WEB_ROUTES,
            "routes/api.php": "<?php\nRoute::post('/login', [AuthController::class, 'login']);\n",
        }
    )
    root = project_builder.path()
    viewer = LaravelRoutesViewer(ViewerContext(project_type=_laravel_type(), runner=fake_runner))

    output = viewer.generate(root)

    assert fake_runner.calls == [ROUTE_LIST_COMMAND]
    assert "Could not retrieve routes using artisan" in output
    assert "| POST | api/login | AuthController@login |  |" in output
    assert "| GET\\|HEAD | posts/{post} | PostController@show | posts.show |" in output


def test_viewer_shows_raw_files_when_nothing_parses(project_builder: ProjectBuilder) -> None:
    project_builder.laravel()
    project_builder.write({"routes/web.php": "<?php\n// routes are registered by a package\n"})
    root = project_builder.path()
    runner = FakeRunner({ROUTE_LIST_COMMAND: SubprocessFailure(ROUTE_LIST_COMMAND, "timed out after 60s")})
    viewer = LaravelRoutesViewer(ViewerContext(project_type=_laravel_type(), runner=runner))

    output = viewer.generate(root)

    assert "## Web Routes\n\n```php\n<?php\n// routes are registered by a package\n```" in output


def test_not_applicable_without_laravel_trait(project_builder: ProjectBuilder) -> None:
    project_builder.laravel()

    assert LaravelRoutesViewer(ViewerContext(project_type=ProjectType())).is_applicable(project_builder.path()) is False
