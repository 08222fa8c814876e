from app.services.connecteam_client import ConnecteamClient


def get_connecteam_client() -> ConnecteamClient:
    return ConnecteamClient()
