"""livecompose — staged ffmpeg composition and supervised live broadcast.

Pull remote clips and graphics, cut / re-encode / overlay / concatenate
them into one finished asset, then stream that asset to an RTMP endpoint
while reporting lifecycle status to a remote coordinator.
"""
