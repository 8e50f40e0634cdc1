from solnftcollection.cli import create_collection_main

if __name__ == "__main__":
    create_collection_main()
