from fastapi.testclient import TestClient
from aidatlas.main import app

client = TestClient(app)

print('ROOT:')
print(client.get('/').json())

print('\nHEALTH:')
print(client.get('/health').json())

print('\nNAV:')
print(client.get('/nav').json())

print('\nDB HEALTH:')
resp = client.get('/health/db')
print(resp.status_code)
try:
    print(resp.json())
except ValueError:
    print(resp.text)
