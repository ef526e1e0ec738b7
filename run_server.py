import uvicorn

from tradegraph.api.server import DATA_PATH_ENV, default_data_path

if __name__ == "__main__":
    print("Starting Trade Graph API Server...")
    print(f"Data source: {default_data_path()} (override with {DATA_PATH_ENV})")
    print("Graph endpoint: http://localhost:8000/api/v1/graph")
    print("Docs available at: http://localhost:8000/docs")

    uvicorn.run(
        "tradegraph.api.server:app",
        host="0.0.0.0",
        port=8000,
        reload=True
    )
