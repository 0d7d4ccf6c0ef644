import requests

CONFIG_PATH = "/config"
LISTINGS_PATH = "/serverListings"


class MasterserverError(Exception):
    pass


class Masterserver:
    """HTTP access to the masterserver."""

    def __init__(self, base_url, timeout=5.0, session=None):
        self.base_url = base_url.rstrip("/")
        self.timeout = timeout
        self.session = session or requests.Session()
        self.session.headers["Content-Type"] = "application/json"

    def __repr__(self):
        return "<Masterserver %s>" % self.base_url

    def get_config(self):
        try:
            r = self.session.get(self.base_url + CONFIG_PATH, timeout=self.timeout)
            r.raise_for_status()
            return r.json()
        except (requests.RequestException, ValueError) as e:
            raise MasterserverError("couldn't get the config: %s" % e) from e

    def put_listings(self, actions):
        body = [a.as_json() for a in actions]
        try:
            r = self.session.put(
                self.base_url + LISTINGS_PATH, json=body, timeout=self.timeout
            )
            r.raise_for_status()
        except requests.RequestException as e:
            raise MasterserverError("couldn't send %s actions: %s" % (len(body), e)) from e

    def close(self):
        self.session.close()
