from pod2nix.CONVERTERS.to_traefik import generate_traefik_config
from pod2nix.MODELS.routing_rule import RoutingRule


def test_generate_traefik_config():
    rules = [
        RoutingRule(
            name="web",
            url="http://web:80",
            host="example.com",
            entrypoint="web",
            enableTLS=True,
            certResolver="letsencrypt",
        )
    ]
    result = generate_traefik_config(rules)

    assert result.startswith("  services.traefik.dynamicConfigOptions.http = {")
    assert 'web.loadBalancer.servers = [\n        {\n          url = "http://web:80";\n        }\n      ];' in result
    assert "routers = {\n      web = {" in result
    assert 'rule = "Host(`example.com`)";' in result
    assert 'tls = {\n          certResolver = "letsencrypt";\n        };' in result
    assert 'service = "web";' in result
    assert 'entrypoints = "web";' in result


def test_no_rules():
    assert generate_traefik_config([]) == ""


def test_tls_needs_resolver():
    result = generate_traefik_config([
        RoutingRule(name="app", url="http://app:3000", host="app.test", enable_tls=True),
    ])
    assert "tls" not in result


def test_partial_rules():
    result = generate_traefik_config([
        RoutingRule(name="backend", url="http://10.0.0.2:8080"),
        RoutingRule(name="frontend", host="frontend.test"),
    ])
    assert "backend.loadBalancer.servers" in result
    assert "backend = {" not in result
    assert "frontend = {" in result
    assert "frontend.loadBalancer" not in result


def test_multiple_rules_separated_by_blank_line():
    result = generate_traefik_config([
        RoutingRule(name="a", url="http://a:1", host="a.test"),
        RoutingRule(name="b", url="http://b:2", host="b.test"),
    ])
    assert '      ];\n\n      b.loadBalancer.servers' in result
    assert '      };\n\n      b = {' in result
    assert "\n\n\n" not in result


def test_names_needing_quotes():
    result = generate_traefik_config([
        RoutingRule(name="my.app", url="http://app:80", host="app.test"),
    ])
    assert '"my.app".loadBalancer.servers' in result
    assert '"my.app" = {' in result
