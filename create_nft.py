from solnftcollection.cli import create_nft_main

if __name__ == "__main__":
    create_nft_main()
