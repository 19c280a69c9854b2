from pathlib import Path
import textwrap

from apiscout.domain.models import HTTP_METHODS
from apiscout.extractors.java import spring
from apiscout.extractors.python import django, flask
from apiscout.extractors.ruby import rails


def write(p: Path, s: str) -> None:
    p.parent.mkdir(parents=True, exist_ok=True)
    p.write_text(textwrap.dedent(s), encoding="utf-8")


FLASK_SRC = """\
from flask import Flask
app = Flask(__name__)

@app.route('/items', methods=['POST'])
def create_item():
    print("creating")
    return {"ok": True}, 201

@app.route("/items/<int:item_id>")
@login_required
def get_item(item_id):
    return {}

@app.route('/both', methods=['GET', 'PUT', 'OPTIONS'])
@app.route('/alias')
async def both():
    return {}
"""


def test_flask_routes_methods_and_defaults():
    routes = flask.extract_routes_from_source(FLASK_SRC, file_path="app.py")
    assert [(r.method, r.route_path) for r in routes] == [
        ("POST", "/items"),
        ("GET", "/items/<int:item_id>"),
        ("GET", "/both"),
        ("PUT", "/both"),
        ("GET", "/alias"),
    ]
    assert all(r.method in HTTP_METHODS for r in routes)


def test_flask_handler_body():
    routes = flask.extract_routes_from_source(FLASK_SRC)
    create, get_item, both = routes[0], routes[1], routes[2]

    assert create.handler.splitlines()[0] == "def create_item():"
    assert "return" in create.handler
    assert "print" not in create.handler
    assert "get_item" not in create.handler

    assert get_item.handler.splitlines()[0] == "@login_required"
    assert "def get_item(item_id):" in get_item.handler

    assert both.handler.splitlines()[0] == "async def both():"
    assert "@app.route" not in both.handler


def test_flask_blueprint_and_class_methods():
    src = """\
class Views:
    @blueprint.route("/inner", methods=("DELETE",))
    def inner(self):
        return ""
"""
    routes = flask.extract_routes_from_source(src)
    assert [(r.method, r.route_path) for r in routes] == [("DELETE", "/inner")]
    assert "return" in routes[0].handler


def test_django_urlconf():
    src = """\
from django.urls import path, re_path, include
from . import views

urlpatterns = [
    path('', views.index, name='index'),
    path('articles/<int:year>/', views.year_archive),
    re_path(r'^archive/(?P<slug>[a-z-]+)/$', views.ArchiveView.as_view()),
    # path('old/', views.old),
    path('api/', include('api.urls')),
]
"""
    routes = django.extract_routes_from_source(src)
    assert [r.route_path for r in routes] == [
        "",
        "articles/<int:year>/",
        "^archive/(?P<slug>[a-z-]+)/$",
        "api/",
    ]
    # URLconfs carry no verbs
    assert {r.method for r in routes} == {"GET"}
    assert routes[0].handler == "# View: views.index"
    assert routes[2].handler == "# View: views.ArchiveView.as_view()"
    assert routes[3].handler == "# View: include('api.urls')"


def test_django_only_reads_urls_py(tmp_path: Path):
    write(tmp_path / "shop" / "urls.py", "urlpatterns = [path('cart/', views.cart)]\n")
    write(tmp_path / "shop" / "views.py", "urlpatterns = [path('nope/', views.nope)]\n")

    routes = list(django.extract(tmp_path, [".py"]))
    assert [r.route_path for r in routes] == ["cart/"]
    assert routes[0].file_path == "shop/urls.py"


SPRING_SRC = """\
package demo;

@RestController
@RequestMapping("/api")
public class UserController {

    @GetMapping("/users")
    public List<User> list() {
        System.out.println("listing");
        return service.all();
    }

    @PostMapping(value = "/users")
    public User create(@RequestBody User u) {
        return service.save(u);
    }

    @RequestMapping(value = "/users/{id}", method = RequestMethod.DELETE)
    public void remove(@PathVariable Long id) {
        service.delete(id);
    }

    @PutMapping
    public void replace() {}
}
"""


def test_spring_annotations():
    routes = spring.extract_routes_from_source(SPRING_SRC)
    assert [(r.method, r.route_path) for r in routes] == [
        ("GET", "/api"),
        ("GET", "/users"),
        ("POST", "/users"),
        ("DELETE", "/users/{id}"),
        ("PUT", "/"),
    ]


def test_spring_handler_body():
    routes = spring.extract_routes_from_source(SPRING_SRC)
    assert routes[0].handler == '@RequestMapping("/api")'

    listing = routes[1].handler
    assert listing.startswith('@GetMapping("/users")')
    assert "return service.all();" in listing
    assert "System.out" not in listing
    assert "@PostMapping" not in listing


def test_rails_routes():
    src = """\
Rails.application.routes.draw do
  get 'users/:id', to: 'users#show'
  post 'login' => 'sessions#create'
  delete "sessions"
  resources :photos
end
"""
    routes = rails.extract_routes_from_source(src)
    assert [(r.method, r.route_path, r.handler) for r in routes] == [
        ("GET", "users/:id", "# Controller: users#show"),
        ("POST", "login", "# Controller: sessions#create"),
        ("DELETE", "sessions", "# Controller: unknown#action"),
    ]


def test_rails_only_reads_routes_rb(tmp_path: Path):
    write(tmp_path / "config" / "routes.rb", "get 'a', to: 'x#y'\n")
    write(tmp_path / "app" / "models" / "user.rb", "get 'b', to: 'x#z'\n")

    routes = list(rails.extract(tmp_path, [".rb"]))
    assert [r.route_path for r in routes] == ["a"]
