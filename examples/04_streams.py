"""
Streams - Upload bytes that do not come from a local file
"""
import asyncio
import os
import aiohttp
from driveupload import DriveClient, BytesChunkSource


async def main():
    async with DriveClient(token=os.environ["DRIVEUPLOAD_TOKEN"]) as drive:

        # In-memory buffer
        data = b"hello world\n" * 100000
        result = await drive.upload(chunk_source=BytesChunkSource(data), filename="hello.txt", size=len(data))
        print(f"Uploaded buffer: {result.file_id}")

        # Stream factory: called with (start, length) for every chunk window
        source_url = "https://example.com/big.iso"
        async with aiohttp.ClientSession() as http:
            async with http.head(source_url) as resp:
                size = int(resp.headers["Content-Length"])

            async def open_range(start, length):
                resp = await http.get(source_url, headers={"Range": f"bytes={start}-{start + length - 1}"})

                async def body():
                    async with resp:
                        async for data in resp.content.iter_chunked(64 * 1024):
                            yield data
                return body()

            result = await drive.upload(chunk_source=open_range, filename="big.iso", size=size)
            print(f"Uploaded stream: {result.file_id}")


if __name__ == "__main__":
    asyncio.run(main())
